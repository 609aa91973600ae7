"""Landing page describing the upload endpoint."""

from robyn import Response, status_codes

from app.core.router import Router
from app.core.settings import settings as st

router = Router(__file__)


def render_home() -> str:
    return (
        f"<h1>{st.API_NAME}</h1>"
        "<p>POST files to: <code>/upload</code> (multipart field <code>file</code>)</p>"
        "<p>Files are forwarded to Cloudinary and served from a public URL.</p>"
    )


async def home() -> Response:
    return Response(
        status_code=status_codes.HTTP_200_OK,
        headers={"content-type": "text/html; charset=utf-8"},
        description=render_home(),
    )


router.get("/")(home)
