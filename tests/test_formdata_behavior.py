import os
import tempfile
import unittest

from wifishare import formdata
from wifishare.formdata import InboxWriter


BOUNDARY = "----wifishare-test-boundary"


def _body(*parts) -> bytes:
    """Encode `(disposition, payload)` pairs as a multipart body."""
    out = b""
    for disposition, payload in parts:
        out += f"--{BOUNDARY}\r\n".encode()
        out += f"Content-Disposition: {disposition}\r\n".encode()
        out += b"Content-Type: application/octet-stream\r\n\r\n"
        out += payload + b"\r\n"
    out += f"--{BOUNDARY}--\r\n".encode()
    return out


class FilenameFromDispositionTests(unittest.TestCase):
    def test_extracts_quoted_filename(self):
        """Validate scenario: filename is read from a standard file part header."""
        header = 'form-data; name="file"; filename="photo 01.jpg"'
        self.assertEqual(formdata.filename_from_disposition(header), "photo 01.jpg")

    def test_stops_at_closing_quote(self):
        """Validate scenario: trailing parameters do not leak into the name."""
        header = 'form-data; filename="a.txt"; name="file"'
        self.assertEqual(formdata.filename_from_disposition(header), "a.txt")

    def test_returns_none_for_plain_fields_and_garbage(self):
        """Validate scenario: non-file parts and malformed headers yield None."""
        self.assertIsNone(formdata.filename_from_disposition('form-data; name="note"'))
        self.assertIsNone(formdata.filename_from_disposition('form-data; filename=""'))
        self.assertIsNone(formdata.filename_from_disposition("form-data; filename=unquoted.txt"))
        self.assertIsNone(formdata.filename_from_disposition(""))
        self.assertIsNone(formdata.filename_from_disposition(None))

    def test_ignores_extended_filename_parameter(self):
        """Validate scenario: only the quoted `filename` parameter is used."""
        header = "form-data; name=\"f\"; filename*=UTF-8''%E2%82%AC.txt; filename=\"euro.txt\""
        self.assertEqual(formdata.filename_from_disposition(header), "euro.txt")


class ContentTypeTests(unittest.TestCase):
    def test_boundary_extraction(self):
        """Validate scenario: boundary is the token after `boundary=`."""
        self.assertEqual(formdata.boundary_from_content_type("multipart/form-data; boundary=abc123"), "abc123")
        self.assertEqual(formdata.boundary_from_content_type('multipart/form-data; boundary="q u"'), "q u")
        self.assertEqual(
            formdata.boundary_from_content_type("multipart/form-data; boundary=xyz; charset=utf-8"), "xyz"
        )
        self.assertIsNone(formdata.boundary_from_content_type("multipart/form-data"))
        self.assertIsNone(formdata.boundary_from_content_type("multipart/form-data; boundary="))
        self.assertIsNone(formdata.boundary_from_content_type(None))

    def test_is_multipart_form(self):
        """Validate scenario: only multipart/form-data is accepted."""
        self.assertTrue(formdata.is_multipart_form("multipart/form-data; boundary=x"))
        self.assertTrue(formdata.is_multipart_form("Multipart/Form-Data; boundary=x"))
        self.assertFalse(formdata.is_multipart_form("text/plain"))
        self.assertFalse(formdata.is_multipart_form("multipart/mixed; boundary=x"))
        self.assertFalse(formdata.is_multipart_form(None))


class InboxWriterTests(unittest.TestCase):
    def setUp(self):
        """Prepare test preconditions for each test case."""
        self._tmp = tempfile.TemporaryDirectory()
        self.inbox = self._tmp.name

    def tearDown(self):
        """Clean up resources created by each test case."""
        self._tmp.cleanup()

    def _feed(self, body: bytes, chunk: int = 7) -> InboxWriter:
        writer = InboxWriter(self.inbox, BOUNDARY)
        for i in range(0, len(body), chunk):
            writer.write(body[i:i + chunk])
        writer.finalize()
        return writer

    def test_writes_file_parts_and_skips_fields(self):
        """Validate scenario: file parts land in the inbox, plain fields are dropped."""
        body = _body(
            ('form-data; name="note"', b"hello"),
            ('form-data; name="file"; filename="a.txt"', b"0123456789"),
            ('form-data; name="file"; filename="b.bin"', b"\x00\x01\r\n\x02"),
        )
        writer = self._feed(body)
        self.assertEqual(writer.saved, ["a.txt", "b.bin"])
        self.assertEqual(sorted(os.listdir(self.inbox)), ["a.txt", "b.bin"])
        with open(os.path.join(self.inbox, "a.txt"), "rb") as f:
            self.assertEqual(f.read(), b"0123456789")
        with open(os.path.join(self.inbox, "b.bin"), "rb") as f:
            self.assertEqual(f.read(), b"\x00\x01\r\n\x02")

    def test_path_components_in_filename_are_dropped(self):
        """Validate scenario: a traversal filename is written inside the inbox."""
        self._feed(_body(('form-data; name="file"; filename="../../escape.txt"', b"x")))
        self.assertEqual(os.listdir(self.inbox), ["escape.txt"])

    def test_truncated_stream_raises_and_abort_cleans_up(self):
        """Validate scenario: a body cut inside a file part is malformed and leaves no files."""
        body = _body(('form-data; name="file"; filename="cut.txt"', b"abcdefgh" * 10))
        writer = InboxWriter(self.inbox, BOUNDARY)
        writer.write(body[:150])
        with self.assertRaises(ValueError):
            writer.finalize()
        writer.abort()
        self.assertEqual(os.listdir(self.inbox), [])

    def test_empty_or_headers_only_stream_is_malformed(self):
        """Validate scenario: no closing boundary means the stream is malformed."""
        writer = InboxWriter(self.inbox, BOUNDARY)
        with self.assertRaises(ValueError):
            writer.finalize()

        writer = InboxWriter(self.inbox, BOUNDARY)
        writer.write(f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="file"; filen'.encode())
        with self.assertRaises(ValueError):
            writer.finalize()
        writer.abort()
        self.assertEqual(os.listdir(self.inbox), [])


if __name__ == "__main__":
    unittest.main()
