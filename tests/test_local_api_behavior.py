import os
import tempfile
import unittest
from types import SimpleNamespace

from fastapi import HTTPException
from fastapi.testclient import TestClient

import wifishare.api.local as api_local
from wifishare.server import TransferSession
from wifishare.storage import StorageLayout


class _Client:
    def __init__(self, host: str):
        """Initialize _Client state and collaborator references."""
        self.host = host


class _Req:
    def __init__(self, host: str, session=None):
        """Initialize _Req state and collaborator references."""
        self.client = _Client(host)
        self.app = SimpleNamespace(state=SimpleNamespace(session=session))


class LocalApiBehaviorTests(unittest.TestCase):
    def setUp(self):
        """Prepare test preconditions for each test case."""
        self._tmp = tempfile.TemporaryDirectory()
        self.session = TransferSession(StorageLayout(self._tmp.name))
        self.session.ip = "192.168.1.40"
        self.session.port = 50123
        self.session.url = "http://192.168.1.40:50123"

    def tearDown(self):
        """Clean up resources created by each test case."""
        self._tmp.cleanup()

    def test_loopback_guard_accepts_ipv4_ipv6_and_localhost(self):
        """Validate scenario: loopback guard accepts ipv4 ipv6 and localhost."""
        api_local._require_localhost(_Req("127.0.0.1"))
        api_local._require_localhost(_Req("::1"))
        api_local._require_localhost(_Req("::ffff:127.0.0.1"))
        api_local._require_localhost(_Req("localhost"))
        with self.assertRaises(HTTPException):
            api_local._require_localhost(_Req("192.168.1.10"))
        with self.assertRaises(HTTPException):
            api_local._require_localhost(_Req("::ffff:192.168.1.10"))
        with self.assertRaises(HTTPException):
            api_local._require_localhost(SimpleNamespace(client=None))
        with self.assertRaises(HTTPException):
            api_local._require_localhost(_Req("definitely-not-ip-address"))

    def test_remote_callers_get_403_over_http(self):
        """Validate scenario: the peer-facing app refuses local endpoints for non-loopback clients."""
        with TestClient(self.session.app) as client:
            self.assertEqual(client.get("/api/local/info").status_code, 403)
            self.assertEqual(client.get("/api/local/inbox").status_code, 403)
            r = client.post("/api/local/stage", json={"file_path": "/tmp/x"})
            self.assertEqual(r.status_code, 403)

    def test_local_info_reports_session(self):
        """Validate scenario: info exposes url and layout paths."""
        out = api_local.local_info(_Req("127.0.0.1", self.session))
        self.assertEqual(out["url"], "http://192.168.1.40:50123")
        self.assertEqual(out["port"], 50123)
        self.assertEqual(out["inbox"], self.session.layout.inbox_dir)
        self.assertEqual(out["outbox"], self.session.layout.outbox_dir)
        self.assertIsNone(out["staged"])

    def test_local_stage_and_inbox(self):
        """Validate scenario: local stage places the file, local inbox reports received names."""
        src = os.path.join(self._tmp.name, "song.mp3")
        with open(src, "wb") as f:
            f.write(b"ID3")
        out = api_local.local_stage(api_local.LocalStageRequest(file_path=src), _Req("127.0.0.1", self.session))
        self.assertEqual(out, {"ok": True, "msg": "Ready to send: song.mp3"})
        self.assertEqual(self.session.layout.outbox.current(), "song.mp3")

        missing = api_local.local_stage(
            api_local.LocalStageRequest(file_path=src + ".nope"), _Req("::1", self.session)
        )
        self.assertEqual(missing, {"ok": False, "msg": "File missing"})

        empty = api_local.local_inbox(_Req("127.0.0.1", self.session))
        self.assertEqual(empty, {"status": "No files received", "files": []})
        inbox = self.session.layout.ensure_inbox()
        with open(os.path.join(inbox, "pic.jpg"), "wb") as f:
            f.write(b"\xff\xd8")
        full = api_local.local_inbox(_Req("127.0.0.1", self.session))
        self.assertEqual(full, {"status": "Received: pic.jpg", "files": ["pic.jpg"]})


if __name__ == "__main__":
    unittest.main()
