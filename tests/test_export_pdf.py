import io

from PIL import Image

from conftest import make_suggestion
from views.export_view import build_suggestion_pdf, pdf_filename


def _tiny_image_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 6), color=(46, 139, 87)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_pdf_filename_uses_id_prefix():
    assert pdf_filename(make_suggestion("0123456789abcdef")) == "sugerencia_01234567.pdf"


def test_build_pdf_returns_pdf_bytes():
    pdf = build_suggestion_pdf(make_suggestion("s1", area_name="Calles", created_at="2026-05-01T10:00:00"))

    assert pdf.startswith(b"%PDF")


def test_build_pdf_fetches_at_most_three_images():
    png = _tiny_image_bytes()
    fetched = []

    def fetch(url):
        fetched.append(url)
        return png

    suggestion = make_suggestion("s1", images=tuple(f"https://cdn/{i}.png" for i in range(5)))
    pdf = build_suggestion_pdf(suggestion, fetch)

    assert fetched == ["https://cdn/0.png", "https://cdn/1.png", "https://cdn/2.png"]
    assert pdf.startswith(b"%PDF")


def test_build_pdf_skips_missing_and_unreadable_images():
    responses = {"https://cdn/a.png": None, "https://cdn/b.png": b"not an image"}

    pdf = build_suggestion_pdf(
        make_suggestion("s1", images=("https://cdn/a.png", "https://cdn/b.png"), descripcion="<b>roto</b> & sucio"),
        responses.get,
    )

    assert pdf.startswith(b"%PDF")
