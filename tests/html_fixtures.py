"""Markup builders shaped like Douban collect listing pages."""

from __future__ import annotations


def grid_item(
    title: str,
    *,
    rating: int | None = 4,
    comment: str = "",
    date: str = "2024-01-31",
    tags: str = "",
) -> str:
    rating_span = f'<span class="rating{rating}-t"></span>' if rating else ""
    tags_span = f'<span class="tags">{tags}</span>' if tags else ""
    comment_li = f'<li><span class="comment">{comment}</span></li>' if comment else ""
    return f"""
    <div class="item">
      <div class="pic"><a href="#"><img src="x.jpg"></a></div>
      <div class="info">
        <ul>
          <li class="title"><a href="https://movie.douban.com/subject/1/"><em>{title}</em></a></li>
          <li class="intro">1994-09-10(多伦多电影节) / 美国 / 剧情</li>
          <li>{rating_span}<span class="date">{date}</span>{tags_span}</li>
          {comment_li}
        </ul>
      </div>
    </div>
    """


def subject_item(
    title: str,
    *,
    rating: int | None = 5,
    comment: str = "",
    note: str = "",
    date: str = "2023-05-01 读过",
    tags: str = "",
) -> str:
    rating_span = f'<span class="rating{rating}-t"></span>' if rating else ""
    tags_span = f'<span class="tags">{tags}</span>' if tags else ""
    comment_p = f'<p class="comment comment-item">{comment}</p>' if comment else ""
    return f"""
    <li class="subject-item">
      <div class="pic"><a href="#"><img src="x.jpg"></a></div>
      <div class="info">
        <h2><a href="https://book.douban.com/subject/2/">{title}</a></h2>
        <div class="pub">余华 / 作家出版社 / 2012-8-1</div>
        <div class="short-note">
          <div>{rating_span}<span class="date">{date}</span>{tags_span}</div>
          {comment_p}{note}
        </div>
      </div>
    </li>
    """


def page(*items: str, title: str = "我看过的影视") -> str:
    body = "\n".join(items)
    return f"""<!DOCTYPE html>
    <html>
      <head><title>{title}</title></head>
      <body>
        <div class="grid-view">{body}</div>
      </body>
    </html>
    """


def grid_page(count: int, *, prefix: str = "Movie") -> str:
    return page(*(grid_item(f"{prefix} {i}") for i in range(count)))
