"""Unit tests for relay request helpers."""

import io

import pytest
import pytest_check as check
from fastapi import HTTPException, UploadFile

from geminichat.api.chat import parse_history
from geminichat.api.uploads import (
    DEFAULT_MIME_TYPE,
    MAX_UPLOAD_SIZE,
    read_and_validate_size,
    to_inline_part,
)


class TestParseHistory:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("[]", []),
            ('[{"role": "user"}]', [{"role": "user"}]),
            ('{"a": 1}', {"a": 1}),
            ("", []),
            (None, []),
            ("{broken", []),
        ],
    )
    def test_parse_history(self, raw: str | None, expected: object) -> None:
        assert parse_history(raw) == expected


class TestUploads:
    async def test_file_within_limit_is_read(self) -> None:
        upload = UploadFile(file=io.BytesIO(b"%PDF-1.4"), filename="doc.pdf")

        assert await read_and_validate_size(upload) == b"%PDF-1.4"

    async def test_oversized_file_raises_413(self) -> None:
        upload = UploadFile(file=io.BytesIO(b"\x00" * (MAX_UPLOAD_SIZE + 1)), filename="big.bin")

        with pytest.raises(HTTPException) as exc_info:
            await read_and_validate_size(upload)

        check.equal(exc_info.value.status_code, 413)
        check.equal(exc_info.value.detail, "File size (10.0MB) exceeds maximum allowed (10MB)")

    def test_inline_part_encodes_bytes(self) -> None:
        part = to_inline_part(b"abc", "image/png")

        check.equal(part.inline_data.data, "YWJj")
        check.equal(part.inline_data.mime_type, "image/png")
        check.is_none(part.inline_data.file_name)

    def test_missing_content_type_uses_default(self) -> None:
        assert to_inline_part(b"x", None).inline_data.mime_type == DEFAULT_MIME_TYPE
