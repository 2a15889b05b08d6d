# tests/test_upload.py
from pathlib import Path

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_upload_image(client, settings, admin_headers):
    r = client.post("/products/upload", files={"image": ("lamp.png", PNG, "image/png")}, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    url = body["imageUrl"]
    assert body["data"]["imageUrl"] == url
    assert url.startswith("http://testserver/images/products/")
    assert url.endswith(".png")

    stored = Path(settings.upload_dir) / "products" / url.rsplit("/", 1)[1]
    assert stored.read_bytes() == PNG
    assert client.get(url).content == PNG


def test_upload_without_file(client, admin_headers):
    r = client.post("/products/upload", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "No image uploaded"


def test_upload_empty_file(client, admin_headers):
    r = client.post("/products/upload", files={"image": ("lamp.jpg", b"", "image/jpeg")}, headers=admin_headers)
    assert r.status_code == 400


def test_upload_rejects_other_formats(client, admin_headers):
    r = client.post("/products/upload", files={"image": ("anim.gif", b"GIF89a", "image/gif")}, headers=admin_headers)
    assert r.status_code == 400
    assert "jpg" in r.json()["message"]


def test_upload_is_admin_only(client, alice_headers):
    r = client.post("/products/upload", files={"image": ("lamp.png", PNG, "image/png")}, headers=alice_headers)
    assert r.status_code == 403


def test_uploaded_url_can_be_used_as_product_image(client, admin_headers, make_product):
    url = client.post("/products/upload", files={"image": ("a.jpeg", PNG, "image/jpeg")},
                      headers=admin_headers).json()["imageUrl"]
    product = make_product(image=url)
    assert product["image"] == url
