"""Browser routes of the admin interface."""

from typing import List, Optional
from urllib.parse import quote

LIST_ROUTE = "/"
ADD_ROUTE = "/add"


def edit_route(base64pk: str) -> str:
    """Route of the edit form; always addressed by base64pk."""
    return f"/edit/{quote(base64pk, safe='')}"


class Navigator:
    """Records where a view asked the browser to go."""

    def __init__(self) -> None:
        self.history: List[str] = []

    def navigate(self, path: str) -> None:
        self.history.append(path)

    @property
    def location(self) -> Optional[str]:
        """Last requested route, or None if the view did not navigate."""
        return self.history[-1] if self.history else None
