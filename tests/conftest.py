"""
Shared fixtures.
"""

import pytest


def write_pdf(path, words, width=612, height=792, font_size=24):
    """
    Write a one-page PDF with Helvetica text.

    Args:
        path: Output file
        words: (text, x, baseline_y) tuples in PDF points, bottom-left origin
        width: Page width in points
        height: Page height in points
        font_size: Font size in points
    """
    content = "".join(
        f"BT /F1 {font_size} Tf {x} {y} Td ({text}) Tj ET\n" for text, x, y in words
    ).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width} {height}] "
            f"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>"
        ).encode("latin-1"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"endstream",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset

    path.write_bytes(bytes(out))
    return path


@pytest.fixture
def hello_world_pdf(tmp_path):
    """Letter page with 'Hello' and 'World' on one 24 pt line, 36 pt apart."""
    return write_pdf(
        tmp_path / "hello.pdf",
        [("Hello", 72, 700), ("World", 162, 700)],
    )


@pytest.fixture
def two_line_pdf(tmp_path):
    """Letter page with two lines 40 pt apart."""
    return write_pdf(
        tmp_path / "invoice.pdf",
        [("Invoice", 50, 700), ("Total", 50, 660)],
    )
