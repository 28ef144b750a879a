"""
Example: read a plain-text export of a book page by page, with bionic
emphasis and optional offline speech via pyttsx3.

Pages are separated by form feeds, which is what ``pdftotext`` emits.

Usage:
    python3 reading_demo.py --text /path/to/book.txt --bionic
    python3 reading_demo.py --text /path/to/book.txt --speak --db ./data/demo.db
"""

import argparse
import asyncio
from dataclasses import replace
from pathlib import Path

from reading_companion.config import get_config
from reading_companion.logging_setup import setup_logging
from reading_companion.reader import ReaderContext
from reading_companion.reader.text import estimate_reading_minutes


class ConsoleRenderer:
    """Prints each requested page and confirms it back to the view."""

    def __init__(self, pages, bionic: bool):
        self.pages = pages
        self.bionic = bionic
        self.view = None

    async def request_page(self, page: int) -> None:
        text = self.pages[page - 1] if page <= len(self.pages) else ""
        shown = self.view.render_text(text) if self.bionic else text
        minutes = estimate_reading_minutes(text)
        print(f"\n--- page {page} / {len(self.pages)} (~{minutes} min) ---\n{shown}")
        await self.view.on_page_changed(page, text)


class SplitTextSource:
    def __init__(self, pages):
        self.pages = pages

    async def page_text(self, page: int) -> str:
        return self.pages[page - 1] if page <= len(self.pages) else ""


async def run(args) -> None:
    pages = [chunk.strip() for chunk in args.text.read_text(encoding="utf-8").split("\f")]
    pages = [chunk for chunk in pages if chunk] or [""]

    config = get_config()
    if args.db:
        config = replace(config, database_url=f"sqlite+pysqlite:///{args.db}")

    engine = None
    if args.speak:
        from reading_companion.reader.pyttsx3_engine import Pyttsx3SynthesisEngine

        engine = Pyttsx3SynthesisEngine()

    ctx = ReaderContext.from_config(config, synthesis_engine=engine)
    async with ctx:
        if engine is not None:
            engine.attach(ctx.tts.notify)
        if args.bionic:
            await ctx.config_store.set_bionic_reading(True)

        renderer = ConsoleRenderer(pages, bionic=args.bionic)
        view = await ctx.open_view(str(args.text.resolve()), renderer, SplitTextSource(pages))
        renderer.view = view
        await view.on_load_complete(len(pages))
        print(f"Resuming {args.text.name} at page {view.current_page}")
        await view.request_page(view.current_page)

        if engine is None:
            while await view.next_page():
                pass
            return

        await view.toggle_speech()
        # Speech turns pages by itself; stop once it has been idle for a second.
        idle_polls = 0
        while idle_polls < 2:
            await asyncio.sleep(0.5)
            idle_polls = 0 if ctx.tts.is_active else idle_polls + 1

    print(f"Sessions so far: {ctx.tracker.stats.sessions_count}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--text", required=True, type=Path, help="Path to a form-feed separated text file")
    parser.add_argument("--db", default=None, type=Path, help="SQLite DB path (defaults to DATABASE_URL)")
    parser.add_argument("--bionic", action="store_true", help="Emphasize the start of each word")
    parser.add_argument("--speak", action="store_true", help="Read pages aloud with pyttsx3")
    args = parser.parse_args()

    if not args.text.exists():
        raise FileNotFoundError(f"Text file not found: {args.text}")

    config = get_config()
    setup_logging(config.log_dir, config.log_level)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
