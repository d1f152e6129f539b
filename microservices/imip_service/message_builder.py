"""
Message Builder

iMIP 邮件模板 (主题、标题、正文列表、按钮)
"""

from html import escape
from typing import List, Optional, Tuple

IMIP_INDENT = 15  # wide enough for every body list label, in all languages


class InvitationLinkGenerator:
    """Absolute URLs of the invitation response routes"""

    ROUTES = {
        "accept": "accept",
        "decline": "decline",
        "options": "options",
    }

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def link(self, route: str, token: str) -> str:
        return f"{self.base_url}/invitation/{self.ROUTES[route]}/{token}"


class EmailTemplate:
    """HTML and plain text email body built from ordered blocks"""

    def __init__(self, template_id: str):
        self.template_id = template_id
        self.subject = ""
        self.heading: Optional[Tuple[str, str]] = None
        self.list_items: List[Tuple[str, str, str]] = []
        self.buttons: List[Tuple[str, str]] = []
        self.texts: List[Tuple[str, str]] = []

    def set_subject(self, subject: str) -> None:
        self.subject = subject

    def add_heading(self, title: str, plain: Optional[str] = None) -> None:
        self.heading = (escape(title), plain or title)

    def add_body_list_item(self, html: str, label: str, plain: str) -> None:
        """html is inserted as is; callers escape user supplied values"""
        self.list_items.append((label, html, plain))

    def add_button_group(self, left_text: str, left_url: str, right_text: str, right_url: str) -> None:
        self.buttons = [(left_text, left_url), (right_text, right_url)]

    def add_body_text(self, html: str, plain: str) -> None:
        self.texts.append((html, plain))

    def render_html(self) -> str:
        parts = ['<div class="imip-message">']
        if self.heading:
            parts.append(f"<h1>{self.heading[0]}</h1>")
        if self.list_items:
            parts.append("<table>")
            for label, html, _ in self.list_items:
                parts.append(
                    f'<tr><td class="label">{escape(label)}</td><td class="value">{html}</td></tr>'
                )
            parts.append("</table>")
        if self.buttons:
            parts.append('<p class="buttons">')
            for text, url in self.buttons:
                parts.append(f'<a class="button" href="{escape(url)}">{escape(text)}</a>')
            parts.append("</p>")
        for html, _ in self.texts:
            parts.append(f"<p>{html}</p>")
        parts.append("</div>")
        return "\n".join(parts)

    def render_text(self) -> str:
        lines = []
        if self.heading:
            lines.extend([self.heading[1], ""])
        for label, _, plain in self.list_items:
            value_lines = plain.split("\n")
            lines.append(f"{label.ljust(IMIP_INDENT)}{value_lines[0]}")
            lines.extend(" " * IMIP_INDENT + extra for extra in value_lines[1:])
        if self.buttons:
            lines.append("")
            for text, url in self.buttons:
                lines.append(f"{text}: {url}")
        for _, plain in self.texts:
            lines.extend(["", plain])
        return "\n".join(lines) + "\n"


__all__ = ["EmailTemplate", "InvitationLinkGenerator", "IMIP_INDENT"]
