"""
Command line entry point for the Classboard client.
"""
import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path

from classboard.config.settings import settings
from classboard.config.logging_config import setup_production_logging
from classboard.database.base import init_database, close_database
from classboard.exceptions.error_handler import ErrorContext, ErrorHandler, Notification
from classboard.exceptions.base_exceptions import ClassboardException
from classboard.services.board_service import BoardSession, create_board_session
from classboard.services.persistence import DatabaseBackend


def setup_logging():
    """Configure logging for the application."""
    try:
        if settings.DEBUG:
            # Simple logging for development
            logging.basicConfig(
                level=getattr(logging, settings.LOG_LEVEL.upper()),
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                handlers=[logging.StreamHandler(sys.stderr)]
            )
        else:
            setup_production_logging()
    except Exception as e:
        # Fallback to basic console logging if production logging fails
        print(f"Warning: Production logging setup failed ({e}). Using basic console logging.")
        logging.basicConfig(
            level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stderr)]
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="classboard", description="Anonymous classroom photo and chat board")
    commands = parser.add_subparsers(dest="command", required=True)

    send = commands.add_parser("send", help="Post an anonymous chat message")
    send.add_argument("text")

    upload = commands.add_parser("upload", help="Upload an image to the shared bucket")
    upload.add_argument("path", type=Path)

    gallery = commands.add_parser("gallery", help="List uploaded images")
    gallery.add_argument("--limit", type=int, default=None)
    gallery.add_argument("--oldest-first", action="store_true")

    commands.add_parser("requests", help="List uploads, most recent first")
    commands.add_parser("chat", help="Show the chat history")
    commands.add_parser("quota", help="Show remaining submissions for today")

    block = commands.add_parser("block", help="Block an identity (database backend)")
    block.add_argument("identity")
    block.add_argument("--reason", default=None)

    unblock = commands.add_parser("unblock", help="Unblock an identity (database backend)")
    unblock.add_argument("identity")

    return parser


def show(notification: Notification) -> None:
    print(f"[{notification.icon}] {notification.title}" + (f": {notification.text}" if notification.text else ""))


async def run_command(args: argparse.Namespace, session: BoardSession, handler: ErrorHandler) -> int:
    if args.command == "send":
        result = await session.send_message(args.text)
        notification = handler.notification_for(result)
        if notification:
            show(notification)
        else:
            print(f"Sent ({result.remaining} messages left today)")
        return 0 if result.accepted else 1

    if args.command == "upload":
        try:
            data = args.path.read_bytes()
        except OSError as e:
            show(Notification("warning", "No image selected", f"Could not read {args.path}: {e.strerror}"))
            return 1
        content_type, _ = mimetypes.guess_type(args.path.name)
        result = await session.upload_image(data, args.path.name, content_type)
        show(handler.notification_for(result))
        if result.accepted:
            print(await session.public_url(result.record.key))
        return 0 if result.accepted else 1

    if args.command in ("gallery", "requests"):
        if args.command == "gallery":
            items = await session.gallery(args.limit, newest_first=not args.oldest_first)
        else:
            items = await session.request_history()
        if not items:
            print("No images in the bucket yet.")
        for item in items:
            created = item.created_at.strftime("%Y-%m-%d %H:%M:%S") if item.created_at else "-"
            print(f"{created}  {item.url}")
        return 0

    if args.command == "chat":
        for message in await session.fetch_messages():
            stamp = message.timestamp.strftime("%Y-%m-%d %H:%M") if message.timestamp else "-"
            print(f"[{stamp}] {message.message}")
        return 0

    if args.command == "quota":
        print(f"messages: {await session.remaining('message')} left today")
        print(f"uploads: {await session.remaining('upload')} left today")
        return 0

    if args.command in ("block", "unblock"):
        if not isinstance(session.persistence, DatabaseBackend):
            print("Blocking is managed in the hosted backend's dashboard.")
            return 2
        if args.command == "block":
            await session.persistence.block(args.identity, args.reason)
            print(f"Blocked {args.identity}")
            return 0
        removed = await session.persistence.unblock(args.identity)
        print(f"Unblocked {args.identity}" if removed else f"{args.identity} was not blocked")
        return 0

    return 2


async def main(argv=None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    setup_logging()
    logger = logging.getLogger(__name__)
    handler = ErrorHandler(max_upload_bytes=settings.MAX_UPLOAD_BYTES)
    session = None

    try:
        settings.validate_required_settings()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        uses_database = settings.BACKEND == "database" or settings.QUOTA_STORE == "database"
        if uses_database:
            await init_database()

        session = create_board_session(settings)
        return await run_command(args, session, handler)
    except ClassboardException as e:
        show(handler.handle_error(e, ErrorContext(action=args.command)))
        return 1
    finally:
        if session is not None:
            await session.close()
        await close_database()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
