"""
SnapPDF Backend - Fingerprint Filter Tests
============================================

What we test:
    ✅ Digest is SHA-256 over the bytes
    ✅ First occurrence wins, order preserved
    ✅ Filename and content type do not affect identity
    ✅ Filtering twice changes nothing
"""

import hashlib

from snappdf.services.fingerprint import content_digest, filter_unique


class TestContentDigest:
    def test_digest_is_sha256_hex(self):
        assert content_digest(b"page one") == hashlib.sha256(b"page one").hexdigest()

    def test_different_bytes_different_digest(self):
        assert content_digest(b"a") != content_digest(b"b")


class TestFilterUnique:
    def test_empty_batch(self):
        assert filter_unique([]) == []

    def test_keeps_first_occurrence_in_order(self, make_item):
        first = make_item(b"AAA", "first.png")
        second = make_item(b"BBB", "second.png")
        repeat = make_item(b"AAA", "third.png")

        result = filter_unique([first, second, repeat])

        assert result == [first, second]
        assert result[0].filename == "first.png"

    def test_identity_ignores_filename_and_content_type(self, make_item):
        png = make_item(b"same", "a.png", "image/png")
        jpg = make_item(b"same", "b.jpg", "image/jpeg")

        assert filter_unique([png, jpg]) == [png]

    def test_same_name_different_content_kept(self, make_item):
        a = make_item(b"one", "scan.png")
        b = make_item(b"two", "scan.png")

        assert filter_unique([a, b]) == [a, b]

    def test_all_identical_leaves_one(self, make_item):
        items = [make_item(b"dup", f"{i}.png") for i in range(5)]

        assert filter_unique(items) == [items[0]]

    def test_idempotent(self, make_item):
        batch = [make_item(b"x"), make_item(b"y"), make_item(b"x"), make_item(b"z"), make_item(b"y")]

        once = filter_unique(batch)

        assert filter_unique(once) == once
        assert len({content_digest(item.data) for item in once}) == len(once)

    def test_no_memory_between_calls(self, make_item):
        item = make_item(b"again")

        assert filter_unique([item]) == [item]
        assert filter_unique([item]) == [item]
