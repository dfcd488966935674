"""
Tests for the command line commands.
"""
import argparse
from unittest.mock import AsyncMock

import pytest

from classboard.exceptions.error_handler import ErrorHandler
from classboard.models.enums import SubmissionKind
from classboard.services.persistence import UploadRecord
from classboard.services.submission_gate import GateResult, GateStatus
from main import build_parser, run_command


@pytest.fixture
def session():
    return AsyncMock()


class TestUploadCommand:

    @pytest.mark.asyncio
    async def test_missing_file_is_reported(self, session, tmp_path, capsys):
        args = build_parser().parse_args(["upload", str(tmp_path / "missing.png")])

        code = await run_command(args, session, ErrorHandler())

        assert code == 1
        session.upload_image.assert_not_awaited()
        assert "No image selected" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_upload_prints_public_url(self, session, tmp_path, capsys):
        image = tmp_path / "photo.png"
        image.write_bytes(b"\x89PNG")
        record = UploadRecord("abc.png", b"\x89PNG", "image/png")
        session.upload_image.return_value = GateResult(
            GateStatus.ACCEPTED, SubmissionKind.UPLOAD, 1, 20, record=record
        )
        session.public_url.return_value = "/uploads/abc.png"

        code = await run_command(build_parser().parse_args(["upload", str(image)]), session, ErrorHandler())

        assert code == 0
        session.upload_image.assert_awaited_once_with(b"\x89PNG", "photo.png", "image/png")
        out = capsys.readouterr().out
        assert "Upload Successful" in out
        assert "/uploads/abc.png" in out


class TestOtherCommands:

    @pytest.mark.asyncio
    async def test_quota(self, session, capsys):
        session.remaining.side_effect = [18, 20]

        code = await run_command(argparse.Namespace(command="quota"), session, ErrorHandler())

        assert code == 0
        assert "messages: 18 left today" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_block_needs_database_backend(self, session, capsys):
        args = build_parser().parse_args(["block", "6.6.6.6"])

        assert await run_command(args, session, ErrorHandler()) == 2
