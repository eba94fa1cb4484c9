# tests/test_images.py
"""
We build real PNGs with Pillow, attach metadata through PngInfo / save options,
run the cleaner, then reopen the result to check metadata is gone and pixels are not.
"""
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from pngstrip.cleaners.images import PixelMismatchError, clean_image, verify_pixels
from pngstrip.cleaners.png import SinkWriteError, SourceReadError, FormatError, strip
from pngdata import chunk, chunk_types, gradient, pillow_png, time_chunk


def _text_info() -> PngInfo:
    info = PngInfo()
    info.add_text("Author", "Alice")
    info.add_text("Comment", "shot on my phone " * 20, zip=True)
    info.add_itxt("Title", "Sunset over the lake", lang="en", tkey="Title")
    return info


def test_text_chunks_removed_pixels_kept():
    data = pillow_png(pnginfo=_text_info())
    with Image.open(BytesIO(data)) as im:
        assert im.text["Author"] == "Alice"

    cleaned, stats = strip(data)
    assert stats.text_chunks > 0
    assert stats.total == stats.text_chunks
    assert not {"tEXt", "zTXt", "iTXt"} & set(chunk_types(cleaned))

    with Image.open(BytesIO(cleaned)) as im:
        assert im.text == {}
    verify_pixels(data, cleaned)


def test_exif_removed():
    exif = Image.Exif()
    exif[0x013B] = "Alice"  # Artist
    data = pillow_png(exif=exif)
    assert "eXIf" in chunk_types(data)

    cleaned, stats = strip(data)
    assert stats.exif_data > 0
    with Image.open(BytesIO(cleaned)) as im:
        assert "exif" not in im.info
    verify_pixels(data, cleaned)


def test_time_and_background_removed():
    plain = pillow_png()
    # Pillow does not emit bKGD itself, so splice both chunks in right after IHDR
    after_ihdr = 8 + 25
    data = plain[:after_ihdr] + time_chunk() + chunk("bKGD", b"\x00\xff\x00\xff\x00\xff") + plain[after_ihdr:]
    assert chunk_types(data)[1:3] == ["tIME", "bKGD"]

    cleaned, stats = strip(data)
    assert cleaned == plain
    assert stats.time_chunk == 19
    assert stats.background == 18
    assert stats.total == 37
    verify_pixels(data, cleaned)


def test_rendering_chunks_survive():
    info = PngInfo()
    info.add(b"gAMA", b"\x00\x00\xb1\x8f")
    info.add(b"sRGB", b"\x00")
    data = pillow_png(pnginfo=info, dpi=(300, 300))
    assert {"pHYs", "gAMA", "sRGB"} <= set(chunk_types(data))

    cleaned, stats = strip(data)
    assert cleaned == data
    assert stats.total == 0


def test_icc_profile_survives():
    data = pillow_png(icc_profile=b"not really an icc profile")
    assert "iCCP" in chunk_types(data)

    cleaned, stats = strip(data)
    assert cleaned == data
    with Image.open(BytesIO(cleaned)) as im:
        assert im.info["icc_profile"] == b"not really an icc profile"


def test_palette_and_transparency_survive():
    data = pillow_png(gradient("P"), transparency=0)
    assert {"PLTE", "tRNS"} <= set(chunk_types(data))

    cleaned, stats = strip(data)
    assert cleaned == data
    with Image.open(BytesIO(cleaned)) as im:
        assert im.mode == "P"
        assert im.info["transparency"] == 0


@pytest.mark.parametrize("mode", ["1", "L", "LA", "RGBA"])
def test_other_color_types_keep_pixels(mode):
    info = PngInfo()
    info.add_text("Software", "pngstrip tests")
    data = pillow_png(gradient(mode), pnginfo=info)
    cleaned, stats = strip(data)
    assert stats.text_chunks > 0
    verify_pixels(data, cleaned)


def test_clean_image(tmp_path: Path):
    src = tmp_path / "img.png"
    dst = tmp_path / "img_clean.png"
    src.write_bytes(pillow_png(pnginfo=_text_info()))

    stats = clean_image(src, dst)
    assert dst.exists()
    assert stats.text_chunks > 0
    assert dst.stat().st_size + stats.total == src.stat().st_size
    verify_pixels(src.read_bytes(), dst.read_bytes())


def test_clean_image_missing_source(tmp_path: Path):
    with pytest.raises(SourceReadError):
        clean_image(tmp_path / "missing.png", tmp_path / "out.png")


def test_clean_image_unwritable_destination(tmp_path: Path):
    src = tmp_path / "img.png"
    src.write_bytes(pillow_png())
    dst = tmp_path / "no-such-dir" / "out.png"
    with pytest.raises(SinkWriteError):
        clean_image(src, dst)
    assert not dst.parent.exists()


def test_clean_image_bad_input_leaves_no_output(tmp_path: Path):
    src = tmp_path / "fake.png"
    src.write_bytes(b"\xff\xd8\xff\xe0 definitely a jpeg")
    dst = tmp_path / "fake_clean.png"
    with pytest.raises(FormatError):
        clean_image(src, dst)
    assert list(tmp_path.iterdir()) == [src]


def test_verify_pixels_detects_changes():
    a = pillow_png(gradient())
    b = pillow_png(Image.new("RGB", (32, 32), color=(1, 2, 3)))
    with pytest.raises(PixelMismatchError, match="pixel data differs"):
        verify_pixels(a, b)


def test_verify_pixels_detects_size_change():
    a = pillow_png(gradient(size=(32, 32)))
    b = pillow_png(gradient(size=(16, 32)))
    with pytest.raises(PixelMismatchError, match="size differs"):
        verify_pixels(a, b)
