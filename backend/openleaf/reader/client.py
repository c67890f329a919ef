import logging
import httpx
from openleaf.core.config import settings

logger = logging.getLogger(__name__)


class LibraryAPIError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class LibraryClient:
    """HTTP client for the OpenLeaf API.

    Holds the session cookie between calls, so one instance corresponds to one
    logged-in user. No timeout is applied unless ``timeout`` is given.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self._http = http or httpx.Client(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
        )

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        response = self._http.request(method, path, **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise LibraryAPIError(response.status_code, str(detail))
        return response.json()

    # auth

    def register(self, username: str, email: str, password: str) -> dict:
        data = self._request(
            "POST", "/api/auth/register", json={"username": username, "email": email, "password": password}
        )
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        return data["user"]

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")
        self._http.cookies.clear()

    def me(self) -> dict:
        return self._request("GET", "/api/auth/me")["user"]

    # catalog

    def list_books(self, search: str | None = None) -> list[dict]:
        params = {"search": search} if search else None
        return self._request("GET", "/api/books", params=params)["books"]

    def my_books(self) -> list[dict]:
        return self._request("GET", "/api/my-books")["books"]

    def favorites(self) -> list[dict]:
        return self._request("GET", "/api/favorites")["books"]

    def stats(self) -> dict:
        return self._request("GET", "/api/stats")["stats"]

    def get_book(self, book_id: int) -> dict:
        return self._request("GET", f"/api/books/{book_id}")

    def upload_book(
        self,
        title: str,
        author: str,
        pdf: tuple[str, bytes],
        description: str = "",
        cover: tuple[str, bytes, str] | None = None,
    ) -> dict:
        files = {"book": (pdf[0], pdf[1], "application/pdf")}
        if cover:
            files["cover"] = cover
        data = {"title": title, "author": author, "description": description}
        return self._request("POST", "/api/books", data=data, files=files)["book"]

    def delete_book(self, book_id: int) -> None:
        self._request("DELETE", f"/api/books/{book_id}")

    def download(self, file_path: str) -> bytes:
        response = self._http.get(file_path)
        if response.is_error:
            raise LibraryAPIError(response.status_code, "File not available")
        return response.content

    # progress and favorites

    def get_progress(self, book_id: int) -> dict:
        return self._request("GET", f"/api/progress/{book_id}")["progress"]

    def save_progress(self, book_id: int, current_page: int, total_pages: int) -> None:
        self._request(
            "POST",
            "/api/progress",
            json={"bookId": book_id, "currentPage": current_page, "totalPages": total_pages},
        )

    def toggle_favorite(self, book_id: int) -> bool:
        return bool(self._request("POST", f"/api/favorites/{book_id}")["favorited"])
