"""Command-line interface for the YouTube playlist creator"""

import argparse
import asyncio
import json
import logging
import signal
import sys
import webbrowser
from typing import List, Optional

from pydantic import ValidationError

from .agents.retrieval_agent import create_retrieval_agent
from .clients.youtube_client import YouTubeClient
from .core.exceptions import (
    ConfigurationError, InvalidAPIKeyError, InvalidInputError, MalformedResponseError,
    NotFoundError, PlaylistCreatorError, QuotaExceededError, UpstreamError
)
from .core.logging import setup_logging
from .core.settings import Settings, get_settings
from .models.video_models import FilterSortConfig, PipelineResult, VideoOrder
from .services.channel_store import open_channel_store
from .services.playlist_export import build_playlist_url, run_download, write_id_file

logger = logging.getLogger(__name__)


class PlaylistCreatorCLI:
    """Command-line front end over the retrieval agent and channel store"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.current_tasks = set()

    def install_signal_handlers(self):
        """Cancel in-flight API work on SIGINT/SIGTERM"""
        def signal_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, cancelling running tasks")
            for task in self.current_tasks:
                if not task.done():
                    task.cancel()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def _tracked(self, coro):
        """Run a coroutine as a task that the signal handler can cancel"""
        task = asyncio.ensure_future(coro)
        self.current_tasks.add(task)
        try:
            return await task
        finally:
            self.current_tasks.discard(task)

    def create_parser(self) -> argparse.ArgumentParser:
        """Create command-line argument parser"""
        parser = argparse.ArgumentParser(
            prog="playlist-creator",
            description="Build ordered playlists from a YouTube channel's uploads",
            formatter_class=argparse.RawDescriptionHelpFormatter
        )
        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Search command
        search_parser = subparsers.add_parser('search', help='Find a channel ID by name')
        search_parser.add_argument('name', type=str, help='Channel name to search for')
        search_parser.add_argument('--all', action='store_true', help='List several candidates instead of the first match')
        search_parser.add_argument('--save', action='store_true', help='Save the first match to the channel list')

        # Fetch command
        fetch_parser = subparsers.add_parser('fetch', help="List, filter and sort a channel's videos")
        source = fetch_parser.add_mutually_exclusive_group(required=True)
        source.add_argument('--channel-id', type=str, help='YouTube channel ID')
        source.add_argument('--channel', type=str, help='Channel name (first search match is used)')
        source.add_argument('--saved', type=str, help='Saved channel ID or name')
        fetch_parser.add_argument(
            '--order',
            type=str,
            choices=[order.value for order in VideoOrder.sorted_cases()],
            default=VideoOrder.NEWEST_FIRST.value,
            help='Sort order (default: date)'
        )
        fetch_parser.add_argument('--keyword', type=str, help='Keep videos whose title or description contains this text')
        fetch_parser.add_argument('--min-duration', type=float, help='Minimum duration in minutes')
        fetch_parser.add_argument('--include-shorts', action='store_true', help='Keep videos of 60 seconds or less')
        fetch_parser.add_argument(
            '--max-results',
            type=int,
            default=self.settings.max_results,
            help=f'Maximum number of videos (default: {self.settings.max_results})'
        )
        fetch_parser.add_argument(
            '--format',
            type=str,
            choices=['text', 'json', 'ids', 'url'],
            default='text',
            help='Output format (default: text)'
        )
        fetch_parser.add_argument('--output', type=str, help='Also write the video IDs (or JSON with --format json) to this file')
        fetch_parser.add_argument('--open', action='store_true', help='Open the playlist URL in a browser')
        fetch_parser.add_argument('--download', action='store_true', help='Pass the IDs to the download script')

        # Saved channels
        channels_parser = subparsers.add_parser('channels', help='Manage saved channels')
        channel_commands = channels_parser.add_subparsers(dest='channels_command')
        channel_commands.add_parser('list', help='Show saved channels')
        add_parser = channel_commands.add_parser('add', help='Save a channel')
        add_parser.add_argument('channel_id', type=str)
        add_parser.add_argument('name', type=str)
        add_parser.add_argument('--color', type=str, help='Badge colour as #RRGGBB')
        rename_parser = channel_commands.add_parser('rename', help='Rename a saved channel')
        rename_parser.add_argument('channel_id', type=str)
        rename_parser.add_argument('name', type=str)
        rename_parser.add_argument('--color', type=str, help='Badge colour as #RRGGBB')
        remove_parser = channel_commands.add_parser('remove', help='Delete a saved channel')
        remove_parser.add_argument('channel_id', type=str)
        move_parser = channel_commands.add_parser('move', help='Move a saved channel to a new position')
        move_parser.add_argument('channel_id', type=str)
        move_parser.add_argument('index', type=int)

        return parser

    async def search_command(self, args) -> int:
        """Execute search command"""
        async with YouTubeClient(settings=self.settings) as client:
            if args.all:
                channels = await self._tracked(client.search_channels(args.name))
                if not channels:
                    raise NotFoundError(f"No channel found with name '{args.name}'")
            else:
                channels = [await self._tracked(client.search_channel(args.name))]

        for channel in channels:
            print(f"📺 {channel.display_name}  ({channel.id})")

        if args.save:
            store = await open_channel_store(settings=self.settings)
            saved = await store.save_channel(channels[0].id, channels[0].display_name or channels[0].id)
            print(f"💾 Saved '{saved.name}'")
        return 0

    async def fetch_command(self, args) -> int:
        """Execute fetch command"""
        config = FilterSortConfig(
            order=VideoOrder(args.order),
            keyword=args.keyword,
            min_duration_minutes=args.min_duration,
            include_shorts=args.include_shorts,
            max_results=args.max_results
        )

        channel_id, channel_name = args.channel_id, args.channel
        channel_title = None
        if args.saved:
            store = await open_channel_store(settings=self.settings)
            saved = await store.find_channel(args.saved)
            if saved is None:
                raise NotFoundError(f"No saved channel matches '{args.saved}'")
            channel_id, channel_title = saved.id, saved.name

        async with create_retrieval_agent(settings=self.settings) as agent:
            result = await self._tracked(
                agent.run(config, channel_id=channel_id, channel_name=channel_name)
            )

        channel_title = channel_title or result.channel.display_name or None
        self._print_result(result, args.format)

        if args.output:
            self._write_output(result, args.output, args.format)

        if not result.videos:
            return 0
        if args.open:
            webbrowser.open(build_playlist_url(result.video_ids))
            print("🌐 Opened in browser")
        if args.download:
            return run_download(result.video_ids, self.settings.download_script_path, channel_title)
        return 0

    async def channels_command(self, args) -> int:
        """Execute channels sub-commands"""
        store = await open_channel_store(settings=self.settings)
        action = args.channels_command or 'list'

        if action == 'add':
            channel = await store.save_channel(args.channel_id, args.name, args.color)
            print(f"💾 Saved '{channel.name}' ({channel.id})")
        elif action == 'rename':
            channel = await store.rename_channel(args.channel_id, args.name, args.color)
            print(f"✏️  Channel updated: {channel.name}")
        elif action == 'remove':
            if not await store.delete_channel(args.channel_id):
                raise NotFoundError(f"Channel {args.channel_id} is not saved")
            print(f"🗑️  Removed {args.channel_id}")
        elif action == 'move':
            await store.move_channel(args.channel_id, args.index)
            await self._print_channels(store)
        else:
            await self._print_channels(store)
        return 0

    async def _print_channels(self, store) -> None:
        channels = await store.list_channels()
        if not channels:
            print("ℹ️  No saved channels")
            return
        for channel in channels:
            print(f"{channel.position:>3}. {channel.name}  ({channel.id})  {channel.color_hex}")

    def _print_result(self, result: PipelineResult, output_format: str) -> None:
        if output_format == 'json':
            print(json.dumps(self._result_payload(result), indent=2, ensure_ascii=False))
        elif output_format == 'ids':
            print(",".join(result.video_ids))
        elif output_format == 'url':
            print(result.playlist_url or "")
        else:
            label = result.channel.display_name or result.channel.id
            print(f"✅ Found {len(result.videos)} videos for {label} "
                  f"({result.fetched_details} of {result.total_video_ids} passed the duration filters)")
            for index, video in enumerate(result.videos, start=1):
                print(f"{index:>3}. [{video.formatted_duration:>8}] {video.published_at[:10]}  {video.title}  ({video.id})")
            if result.playlist_url:
                print(f"\n🔗 {result.playlist_url}")

    def _result_payload(self, result: PipelineResult) -> dict:
        return {
            "channel": result.channel.model_dump(),
            "total_video_ids": result.total_video_ids,
            "fetched_details": result.fetched_details,
            "playlist_url": result.playlist_url,
            "videos": [
                dict(video.model_dump(), is_short=video.is_short, formatted_duration=video.formatted_duration)
                for video in result.videos
            ],
        }

    def _write_output(self, result: PipelineResult, path: str, output_format: str) -> None:
        if output_format == 'json':
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self._result_payload(result), f, indent=2, ensure_ascii=False)
        elif result.videos:
            write_id_file(result.video_ids, path)
        else:
            print("ℹ️  No video IDs to write")
            return
        print(f"📄 Output saved to: {path}")


def report_error(error: Exception) -> None:
    """Print a user-facing message for a pipeline failure"""
    if isinstance(error, InvalidAPIKeyError):
        print("🔑 Please check your API key - it might be incorrect or expired")
    elif isinstance(error, QuotaExceededError):
        print("⚠️  YouTube API quota exceeded - try again later")
    elif isinstance(error, UpstreamError):
        print(f"❌ YouTube API error: {error}")
    elif isinstance(error, NotFoundError):
        print(f"❌ {error}")
    elif isinstance(error, MalformedResponseError):
        print(f"❌ Unexpected API response: {error}")
    elif isinstance(error, (InvalidInputError, ConfigurationError)):
        print(f"❌ {error}")
    else:
        print(f"❌ Error: {error}")


async def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Configuration error: {e}")
        print("💡 Please check your .env file and environment variables.")
        return 1

    setup_logging(settings)
    cli = PlaylistCreatorCLI(settings)
    parser = cli.create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    cli.install_signal_handlers()
    handlers = {
        'search': cli.search_command,
        'fetch': cli.fetch_command,
        'channels': cli.channels_command,
    }

    try:
        return await handlers[args.command](args)
    except asyncio.CancelledError:
        print("\n⚠️  Operation cancelled by user")
        return 130
    except (PlaylistCreatorError, ValidationError) as e:
        logger.info(f"Command '{args.command}' failed: {e}")
        report_error(e)
        return 1
    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        logger.exception("CLI command failed")
        return 1


def run() -> None:
    """Console-script entry point"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
