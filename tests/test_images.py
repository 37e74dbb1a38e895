import io

import httpx
from PIL import Image

from infrastructure.images import MAX_DIMENSION, ImageLoader, shrink_image


def jpeg_bytes(width, height):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (20, 80, 160)).save(buffer, format="JPEG")
    return buffer.getvalue()


def mock_client(routes):
    def handler(request):
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_images_are_inlined_in_order():
    urls = ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]
    client = mock_client({url: jpeg_bytes(64, 64) for url in urls})

    payloads = await ImageLoader(client=client).load(urls)

    assert len(payloads) == 2
    assert all(p.startswith("data:image/jpeg;base64,") for p in payloads)
    await client.aclose()


async def test_failed_download_falls_back_to_url():
    ok, missing = "https://cdn.example.com/a.jpg", "https://cdn.example.com/gone.jpg"
    client = mock_client({ok: jpeg_bytes(32, 32)})

    payloads = await ImageLoader(client=client).load([missing, ok])

    assert payloads[0] == missing
    assert payloads[1].startswith("data:")
    await client.aclose()


async def test_inline_disabled_passes_urls_through():
    urls = ["https://cdn.example.com/a.jpg"]

    assert await ImageLoader(inline=False).load(urls) == urls


def test_large_images_are_downscaled():
    data, media_type = shrink_image(jpeg_bytes(MAX_DIMENSION * 2, MAX_DIMENSION))

    img = Image.open(io.BytesIO(data))
    assert media_type == "image/jpeg"
    assert max(img.size) == MAX_DIMENSION


def test_small_images_are_left_alone():
    original = jpeg_bytes(100, 80)

    data, _ = shrink_image(original)

    assert data == original
