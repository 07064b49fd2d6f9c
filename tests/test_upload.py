"""Image upload: WebP conversion, size fitting and deletion."""

import io
import os

from PIL import Image

from contentdesk.core.storage import process_image


def _png_bytes(size=(1600, 900), mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, size, color=(200, 50, 50) if mode == "RGB" else (200, 50, 50, 128)).save(buf, format="PNG")
    return buf.getvalue()


def test_process_image_fits_inside_bounds():
    webp = process_image(_png_bytes((1600, 900)), max_width=800, max_height=600)
    img = Image.open(io.BytesIO(webp))
    assert img.format == "WEBP"
    assert img.size == (800, 450)


def test_process_image_never_upscales():
    img = Image.open(io.BytesIO(process_image(_png_bytes((200, 100)))))
    assert img.size == (200, 100)


def test_process_image_keeps_alpha():
    img = Image.open(io.BytesIO(process_image(_png_bytes((100, 100), mode="RGBA"))))
    assert img.mode == "RGBA"


def test_process_image_keeps_palette_transparency():
    palette_img = Image.new("P", (40, 40), color=0)
    palette_img.putpalette([255, 255, 255, 200, 50, 50] + [0, 0, 0] * 254)
    palette_img.paste(1, (10, 10, 30, 30))
    buf = io.BytesIO()
    palette_img.save(buf, format="PNG", transparency=0)

    img = Image.open(io.BytesIO(process_image(buf.getvalue())))
    assert img.mode == "RGBA"
    assert img.getpixel((0, 0))[3] == 0
    assert img.getpixel((20, 20))[3] == 255


def test_upload_and_delete(client, auth, app):
    response = client.post("/api/upload/image", data={
        "image": (io.BytesIO(_png_bytes()), "cover.png", "image/png"),
    }, headers=auth, content_type="multipart/form-data")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["filename"].startswith("blog-")
    assert data["filename"].endswith(".webp")
    assert data["mimetype"] == "image/webp"
    stored = os.path.join(app.config["UPLOAD_FOLDER"], data["filename"])
    assert os.path.isfile(stored)

    assert client.delete(f"/api/upload/image/{data['filename']}", headers=auth).status_code == 200
    assert not os.path.exists(stored)
    assert client.delete(f"/api/upload/image/{data['filename']}", headers=auth).status_code == 404


def test_upload_rejects_non_image(client, auth):
    response = client.post("/api/upload/image", data={
        "image": (io.BytesIO(b"hello"), "notes.txt", "text/plain"),
    }, headers=auth, content_type="multipart/form-data")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Only image files are allowed"


def test_upload_rejects_undecodable_image(client, auth):
    response = client.post("/api/upload/image", data={
        "image": (io.BytesIO(b"not really a png"), "fake.png", "image/png"),
    }, headers=auth, content_type="multipart/form-data")
    assert response.status_code == 400


def test_upload_requires_file(client, auth):
    response = client.post("/api/upload/image", data={}, headers=auth, content_type="multipart/form-data")
    assert response.status_code == 400
    assert response.get_json()["message"] == "No file uploaded"


def test_upload_size_limit(client, auth, app):
    app.config["UPLOAD_MAX_BYTES"] = 100
    response = client.post("/api/upload/image", data={
        "image": (io.BytesIO(_png_bytes()), "cover.png", "image/png"),
    }, headers=auth, content_type="multipart/form-data")
    assert response.status_code == 400


def test_delete_rejects_unsafe_filename(client, auth):
    response = client.delete("/api/upload/image/bad%20name.webp", headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid filename"
