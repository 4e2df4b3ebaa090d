"""
Integration tests over a real socket.
"""

import http.client
import json
import socket


def connect(test_server) -> http.client.HTTPConnection:
    return http.client.HTTPConnection("127.0.0.1", test_server.port, timeout=5)


def post_json(conn, path, payload):
    conn.request("POST", path, body=json.dumps(payload),
                 headers={"Content-Type": "application/json"})
    response = conn.getresponse()
    return response, json.loads(response.read())


class TestSocketServer:

    def test_create_and_fetch(self, test_server):
        conn = connect(test_server)
        try:
            response, body = post_json(conn, "/api/users", {"name": "Ann", "age": 30})
            assert response.status == 201
            assert body["user"] == {"id": 1, "name": "Ann", "age": 30}

            conn.request("GET", "/api/users/1")
            response = conn.getresponse()
            assert response.status == 200
            assert response.getheader("Content-Type") == "application/json; charset=utf-8"
            assert json.loads(response.read()) == {"id": 1, "name": "Ann", "age": 30}
        finally:
            conn.close()

    def test_keep_alive(self, test_server):
        conn = connect(test_server)
        try:
            conn.request("GET", "/api/users")
            first = conn.getresponse()
            first.read()
            assert first.getheader("Connection") == "keep-alive"

            conn.request("GET", "/api/users")
            second = conn.getresponse()
            second.read()
            assert second.status == 200
            assert second.getheader("X-RateLimit-Remaining") == "98"
        finally:
            conn.close()

    def test_head_has_no_body(self, test_server):
        conn = connect(test_server)
        try:
            conn.request("HEAD", "/api/users")
            response = conn.getresponse()

            assert response.status == 200
            assert response.getheader("Content-Length") == "2"
            assert response.read() == b""
        finally:
            conn.close()

    def test_security_headers_on_wire(self, test_server):
        conn = connect(test_server)
        try:
            conn.request("GET", "/api/users", headers={"Origin": "http://example.com"})
            response = conn.getresponse()
            response.read()

            assert response.getheader("Access-Control-Allow-Origin") == "http://example.com"
            assert response.getheader("Strict-Transport-Security").startswith("max-age=")
            assert response.getheader("X-Powered-By") is None
            assert response.getheader("Date")
        finally:
            conn.close()

    def test_malformed_request_line(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
            sock.sendall(b"NOT A REQUEST\r\n\r\n")
            data = sock.recv(4096)

        assert data.startswith(b"HTTP/1.1 400 Bad Request\r\n")
        assert b"Connection: close" in data

    def test_unsupported_version(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
            sock.sendall(b"GET / HTTP/2.0\r\nHost: x\r\n\r\n")
            data = sock.recv(4096)

        assert data.startswith(b"HTTP/1.1 505 ")

    def test_connection_close_honoured(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
            sock.sendall(b"GET /api/users HTTP/1.1\r\nHost: x\r\nConnection: close\r\n\r\n")
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)

        data = b"".join(chunks)
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"Connection: close" in data
        assert data.endswith(b"[]")
