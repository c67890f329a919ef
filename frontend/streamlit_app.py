import base64
import os
import httpx
import streamlit as st
from streamlit_autorefresh import st_autorefresh
from openleaf.reader import LibraryAPIError, LibraryClient, ReaderSession, Scheduler

BACKEND_URL = os.getenv("BACKEND_URL", "http://backend:8000")
PUBLIC_BACKEND_URL = os.getenv("PUBLIC_BACKEND_URL", "http://localhost:8000")
FLIP_POLL_MS = 150

st.set_page_config(page_title="OpenLeaf Reader", layout="wide")

st.markdown(
    """
    <style>
    :root {
        --surface: #111316;
        --panel: #161a1f;
        --panel-2: #1b2027;
        --border: #2a323d;
        --accent: #18a0fb;
        --text: #f2f4f8;
        --muted: #98a2b3;
    }
    .block-container { padding-top: 1.2rem; padding-bottom: 1rem; }
    .book-meta { color: var(--muted); font-size: 0.9rem; }
    .stat-box {
        border: 1px solid var(--border);
        border-radius: 10px;
        padding: 10px 14px;
        background: var(--panel-2);
        color: var(--text);
    }
    .stat-box .value { font-size: 1.6rem; font-weight: 600; }
    .spread-page img { box-shadow: 0 0 0 1px var(--border); background: #fff; }
    .flipping img {
        transform-origin: left center;
        animation: page-flip 0.6s cubic-bezier(0.4, 0, 0.2, 1) forwards;
    }
    @keyframes page-flip {
        from { transform: perspective(1600px) rotateY(0deg); }
        to { transform: perspective(1600px) rotateY(-180deg); }
    }
    .blank-page {
        height: 640px;
        border: 1px dashed var(--border);
        border-radius: 6px;
        background: var(--panel-2);
    }
    .stButton button { border-radius: 8px; border: 1px solid var(--border); }
    </style>
    """,
    unsafe_allow_html=True,
)


def get_client() -> LibraryClient:
    if "client" not in st.session_state:
        st.session_state["client"] = LibraryClient(base_url=BACKEND_URL)
    return st.session_state["client"]


def call(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except LibraryAPIError as exc:
        if exc.status_code == 401:
            st.session_state.pop("user", None)
        st.error(exc.detail)
    except httpx.HTTPError:
        st.error("Backend unavailable.")
    return None


def notify(message: str, kind: str) -> None:
    icon = {"error": "⚠️", "success": "✅"}.get(kind)
    st.toast(message, icon=icon)


def open_reader(book_id: int) -> None:
    st.session_state["reader_book_id"] = book_id
    st.session_state.pop("reader", None)


def close_reader() -> None:
    reader = st.session_state.pop("reader", None)
    if reader is not None:
        reader.close()
    st.session_state.pop("reader_book_id", None)


def render_auth() -> None:
    st.title("OpenLeaf Reader")
    login_tab, register_tab = st.tabs(["Login", "Register"])
    client = get_client()
    with login_tab:
        with st.form("login-form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                user = call(client.login, email, password)
                if user:
                    st.session_state["user"] = user
                    st.rerun()
    with register_tab:
        with st.form("register-form"):
            username = st.text_input("Username")
            email = st.text_input("Email", key="register-email")
            password = st.text_input("Password", type="password", key="register-password")
            if st.form_submit_button("Create account"):
                user = call(client.register, username, email, password)
                if user:
                    st.session_state["user"] = user
                    st.rerun()


def render_stats(client: LibraryClient) -> None:
    stats = call(client.stats) or {}
    labels = [
        ("Total books", "totalBooks"),
        ("My uploads", "myBooks"),
        ("Favorites", "favoritesCount"),
        ("Books read", "booksRead"),
    ]
    for col, (label, key) in zip(st.columns(len(labels)), labels):
        col.markdown(
            f"<div class='stat-box'><div class='book-meta'>{label}</div>"
            f"<div class='value'>{stats.get(key, 0)}</div></div>",
            unsafe_allow_html=True,
        )


def render_upload(client: LibraryClient) -> None:
    with st.sidebar.expander("Upload book"):
        with st.form("upload-form", clear_on_submit=True):
            title = st.text_input("Title")
            author = st.text_input("Author")
            description = st.text_area("Description")
            pdf = st.file_uploader("PDF", type=["pdf"])
            cover = st.file_uploader("Cover (optional)", type=["jpg", "jpeg", "png", "gif", "webp"])
            if st.form_submit_button("Upload"):
                if not title or not author or pdf is None:
                    st.error("Title, author, and book file are required")
                    return
                cover_part = (cover.name, cover.getvalue(), cover.type) if cover else None
                book = call(
                    client.upload_book,
                    title,
                    author,
                    (pdf.name, pdf.getvalue()),
                    description=description,
                    cover=cover_part,
                )
                if book:
                    st.success(f"Uploaded {book['title']}")


def progress_fraction(book: dict) -> float:
    total = book.get("total_pages") or 0
    if total <= 0:
        return 0.0
    return min(1.0, (book.get("current_page") or 1) / total)


def render_book_card(client: LibraryClient, book: dict, key_prefix: str) -> None:
    user = st.session_state.get("user") or {}
    with st.container(border=True):
        cover = book.get("cover_path")
        if cover:
            st.image(f"{PUBLIC_BACKEND_URL}{cover}", use_container_width=True)
        st.markdown(f"**{book['title']}**")
        st.markdown(f"<div class='book-meta'>by {book['author']}</div>", unsafe_allow_html=True)
        if book.get("total_pages"):
            st.progress(progress_fraction(book), text=f"Page {book['current_page']} of {book['total_pages']}")
        cols = st.columns(3)
        if cols[0].button("Read", key=f"{key_prefix}_read_{book['id']}"):
            open_reader(book["id"])
            st.rerun()
        star = "★" if book.get("is_favorite") else "☆"
        if cols[1].button(star, key=f"{key_prefix}_fav_{book['id']}"):
            if call(client.toggle_favorite, book["id"]) is not None:
                st.rerun()
        if book.get("uploaded_by") == user.get("id"):
            if cols[2].button("Delete", key=f"{key_prefix}_del_{book['id']}"):
                call(client.delete_book, book["id"])
                st.rerun()


def render_grid(client: LibraryClient, books: list[dict], key_prefix: str, per_row: int = 4) -> None:
    if not books:
        st.caption("No books here yet.")
        return
    for start in range(0, len(books), per_row):
        for col, book in zip(st.columns(per_row), books[start:start + per_row]):
            with col:
                render_book_card(client, book, key_prefix)


def render_dashboard() -> None:
    client = get_client()
    user = st.session_state["user"]
    st.sidebar.title("OpenLeaf Reader")
    st.sidebar.caption(f"{user['username']} · {user['email']}")
    if st.sidebar.button("Log out"):
        call(client.logout)
        st.session_state.pop("user", None)
        st.rerun()
    render_upload(client)

    render_stats(client)
    search = st.text_input("Search by title or author", key="search")
    books = call(client.list_books, search or None) or []

    continuing = [b for b in books if b.get("total_pages")]
    if continuing and not search:
        st.subheader("Continue reading")
        render_grid(client, continuing[:4], "continue")

    library_tab, favorites_tab, mine_tab = st.tabs(["Library", "Favorites", "My books"])
    with library_tab:
        render_grid(client, books, "library")
    with favorites_tab:
        render_grid(client, call(client.favorites) or [], "favorites")
    with mine_tab:
        render_grid(client, call(client.my_books) or [], "mine")


def get_reader(book_id: int) -> ReaderSession | None:
    reader = st.session_state.get("reader")
    if reader is None or reader.book_id != book_id:
        reader = ReaderSession(book_id, get_client(), scheduler=Scheduler(), notify=notify)
        with st.spinner("Loading book..."):
            if not reader.load_book():
                return None
        st.session_state["reader"] = reader
    return reader


def render_spread(reader: ReaderSession) -> None:
    pages = reader.spread
    css_class = "spread-page flipping" if reader.is_flipping else "spread-page"
    for col, page in zip(st.columns(2), pages):
        with col:
            if page.is_blank:
                st.markdown("<div class='blank-page'></div>", unsafe_allow_html=True)
            else:
                b64 = base64.b64encode(page.image).decode("ascii")
                st.markdown(
                    f"<div class='{css_class}'><img src='data:image/png;base64,{b64}' style='width:100%;'/></div>",
                    unsafe_allow_html=True,
                )
            st.caption(f"Page {page.number}")


def on_page_input() -> None:
    reader = st.session_state.get("reader")
    if reader is not None:
        reader.go_to_page(int(st.session_state["page_input"]))


def on_slider() -> None:
    reader = st.session_state.get("reader")
    if reader is not None:
        reader.slide_to(int(st.session_state["page_slider"]))


def render_reader(book_id: int) -> None:
    reader = get_reader(book_id)
    if reader is None:
        if st.button("Back to library"):
            close_reader()
            st.rerun()
        return

    if reader.is_flipping:
        st_autorefresh(interval=FLIP_POLL_MS, key=f"flip_{book_id}")
    reader.scheduler.run_due()

    header = st.columns([1, 6, 1, 1])
    if header[0].button("← Back"):
        close_reader()
        st.rerun()
    header[1].markdown(f"### {reader.book['title']}")
    header[1].markdown(f"<div class='book-meta'>by {reader.book['author']}</div>", unsafe_allow_html=True)
    if header[2].button("★" if reader.is_favorite else "☆", key="reader_fav"):
        reader.toggle_favorite()
    if header[3].button("Esc", key="reader_esc"):
        reader.handle_key("Escape")
        close_reader()
        st.rerun()

    render_spread(reader)

    nav = st.columns([1, 2, 4, 1])
    if nav[0].button("◀", disabled=not reader.can_flip_prev, key="reader_prev"):
        reader.handle_key("ArrowLeft")
        st.rerun()
    if nav[3].button("▶", disabled=not reader.can_flip_next, key="reader_next"):
        reader.handle_key("ArrowRight")
        st.rerun()

    total = max(reader.total_pages, 1)
    st.session_state["page_input"] = reader.current_page
    st.session_state["page_slider"] = reader.current_page
    nav[1].number_input(
        f"Page (of {reader.total_pages})",
        min_value=1,
        max_value=total,
        step=1,
        key="page_input",
        on_change=on_page_input,
    )
    if total > 1:
        nav[2].slider("Position", min_value=1, max_value=total, key="page_slider", on_change=on_slider)


if "user" not in st.session_state:
    me = None
    try:
        me = get_client().me()
    except (LibraryAPIError, httpx.HTTPError):
        me = None
    if me:
        st.session_state["user"] = me

if "user" not in st.session_state:
    render_auth()
elif st.session_state.get("reader_book_id"):
    render_reader(st.session_state["reader_book_id"])
else:
    render_dashboard()
