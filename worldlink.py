#!/usr/bin/env python3
"""
worldlink.py — WorldLink command-line tool.

Works entirely offline on a world snapshot file (a JSON export of the
world's elements); no server is contacted.

Snapshot: --snapshot PATH or WORLDLINK_SNAPSHOT_PATH (environment or .env).

Subcommands:
    classify — classification of every field of one element
    show     — outgoing references of one element
    reverse  — elements referencing one element (grouped or raw)
    detect   — probable mentions of known elements in a text
    link     — link every unlinked mention (dry run unless --apply)
    search   — look an element up by name

Usage:
    python worldlink.py --snapshot world.json classify char-1
    python worldlink.py --snapshot world.json reverse loc-1 --raw
    python worldlink.py --snapshot world.json detect nar-1 --field story
    python worldlink.py --snapshot world.json detect --text "Alice met Bob."
    python worldlink.py --snapshot world.json link nar-1 --apply
    python worldlink.py --snapshot world.json search "Town Sq" --category location
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, NoReturn, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adapters.element_store import JsonSnapshotStore
from adapters.field_inference import FieldInferenceEngine
from adapters.link_workflow import LinkResolutionWorkflow
from adapters.mention_linker import DetectorConfig, MentionDetector
from adapters.relationship_graph import RelationshipGraphIndex
from config import Settings
from contracts import CommitStatus, Element, Mention

logger = logging.getLogger("worldlink.cli")


# -- helpers ---------------------------------------------------------------

_CONSOLE: Optional[Console] = None


def _console() -> Console:
    global _CONSOLE
    if _CONSOLE is None:
        _CONSOLE = Console(highlight=False)
    return _CONSOLE


def _short(value: Any, limit: int = 64) -> str:
    s = str(value).replace("\n", " ").strip()
    if len(s) > limit:
        s = s[: limit - 3] + "..."
    return escape(s)


def _label(el: Element) -> str:
    # element text may contain "[...]", which rich would read as markup
    return escape(f"{el.name or '(unnamed)'} [{el.id}]")


def _fail(message: str) -> NoReturn:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _open_store(args: argparse.Namespace, settings: Settings) -> JsonSnapshotStore:
    path = args.snapshot or settings.snapshot_path
    if not path:
        _fail("no snapshot file, use --snapshot or WORLDLINK_SNAPSHOT_PATH")
    try:
        return JsonSnapshotStore(path)
    except OSError as e:
        _fail(f"cannot read snapshot: {e}")
    except ValueError as e:
        _fail(str(e))


def _get(store: JsonSnapshotStore, element_id: str) -> Element:
    try:
        return store.get_element(element_id)
    except KeyError as e:
        _fail(e.args[0])


def _print_mentions_table(title: str, mentions: list[Mention]) -> None:
    table = Table(title=f"{title} [{len(mentions)}]", box=box.ASCII)
    table.add_column("Span", no_wrap=True, justify="right")
    table.add_column("Text")
    table.add_column("Element")
    table.add_column("Category", no_wrap=True)
    table.add_column("Conf", justify="right", no_wrap=True)
    table.add_column("Linked", no_wrap=True)
    for m in mentions:
        table.add_row(
            f"{m.start}-{m.end}",
            _short(m.text, 40),
            _label(m.element),
            m.category,
            f"{m.confidence:.2f}",
            "yes" if m.is_linked else "",
        )
    _console().print(table)


# -- commands --------------------------------------------------------------

def _classify(args: argparse.Namespace, settings: Settings) -> None:
    store = _open_store(args, settings)
    snapshot = store.snapshot()
    element = _get(store, args.element_id)
    engine = FieldInferenceEngine(known_ids=snapshot.keys())

    table = Table(title=f"Fields of {_label(element)}", box=box.ASCII)
    table.add_column("Field", no_wrap=True, style="cyan")
    table.add_column("Kind", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("Value")
    for name, cls in engine.classify_element(element).items():
        table.add_row(
            escape(name),
            cls.cardinality.value,
            cls.target_category or "",
            _short(element.fields.get(name), 56),
        )
    _console().print(table)


def _show(args: argparse.Namespace, settings: Settings) -> None:
    store = _open_store(args, settings)
    snapshot = store.snapshot()
    element = _get(store, args.element_id)
    engine = FieldInferenceEngine(known_ids=snapshot.keys())

    table = Table(title=f"References from {_label(element)}", box=box.ASCII)
    table.add_column("Field", no_wrap=True, style="cyan")
    table.add_column("Target")
    for link in engine.forward_links(element):
        for target_id in link.target_ids:
            target = snapshot.get(target_id)
            shown = _label(target) if target else escape(f"{target_id} (missing)")
            table.add_row(escape(link.field_name), shown)
    _console().print(table)


def _reverse(args: argparse.Namespace, settings: Settings) -> None:
    store = _open_store(args, settings)
    snapshot = store.snapshot()
    target = _get(store, args.element_id)
    index = RelationshipGraphIndex.build(snapshot)

    table = Table(title=f"Referenced by: {_label(target)}", box=box.ASCII, show_lines=True)
    if args.raw:
        table.add_column("Field", no_wrap=True, style="cyan")
        table.add_column("Elements")
        for field_name, sources in sorted(index.reverse_links_for(target.id).items()):
            table.add_row(escape(field_name), "\n".join(_label(el) for el in sources))
    else:
        table.add_column("Relation", no_wrap=True, style="cyan")
        table.add_column("Fields")
        table.add_column("Elements")
        groups = index.grouped_reverse_links_for(target.id)
        for label in sorted(groups):
            group = groups[label]
            table.add_row(
                label,
                escape(", ".join(group.fields)),
                "\n".join(_label(el) for el in group.elements),
            )
    _console().print(table)


def _detect(args: argparse.Namespace, settings: Settings) -> None:
    store = _open_store(args, settings)
    snapshot = store.snapshot()
    detector = MentionDetector.from_elements(snapshot, DetectorConfig.from_settings(settings))

    if args.text is not None:
        mentions = detector.detect(args.text)
        _print_mentions_table("Mentions", mentions)
        return
    if not args.element_id:
        _fail("give an ELEMENT_ID or --text")

    element = _get(store, args.element_id)
    workflow = LinkResolutionWorkflow(
        element,
        engine=FieldInferenceEngine(known_ids=snapshot.keys()),
        text_field=args.field or settings.text_field,
    )
    mentions = detector.detect(workflow.text, workflow.linked_ids())
    _print_mentions_table(f"Mentions in {_label(element)}", mentions)


def _link(args: argparse.Namespace, settings: Settings) -> None:
    store = _open_store(args, settings)
    snapshot = store.snapshot()
    element = _get(store, args.element_id)
    detector = MentionDetector.from_elements(snapshot, DetectorConfig.from_settings(settings))
    workflow = LinkResolutionWorkflow(
        element,
        engine=FieldInferenceEngine(known_ids=snapshot.keys()),
        text_field=args.field or settings.text_field,
        rewrite_text=settings.rewrite_text and not args.no_rewrite,
    )

    mentions = detector.detect(workflow.text, workflow.linked_ids())
    unlinked = [m for m in mentions if not m.is_linked]
    _print_mentions_table("Unlinked mentions", unlinked)

    edit = workflow.link_all(unlinked)
    if edit.is_empty:
        print("Nothing to link.")
        return
    for field_name, ids in edit.field_updates.items():
        print(f"  {field_name}: {', '.join(ids)}")
    if edit.text is not None:
        print(f"  {workflow.text_field}: {edit.rewritten_spans} span(s) rewritten")

    if not args.apply:
        print("Dry run, nothing saved (use --apply).")
        return
    status = workflow.commit(store)
    print(f"status: {status.value}")
    if status is CommitStatus.FAILED:
        sys.exit(1)


def _search(args: argparse.Namespace, settings: Settings) -> None:
    store = _open_store(args, settings)
    detector = MentionDetector.from_elements(store.snapshot(), DetectorConfig.from_settings(settings))
    results = detector.search(args.query, category=args.category)

    table = Table(title=escape(f"Search: {args.query!r} [{len(results)}]"), box=box.ASCII)
    table.add_column("Element")
    table.add_column("Category", no_wrap=True)
    table.add_column("Score", justify="right", no_wrap=True)
    for element, score in results:
        table.add_row(_label(element), element.category, f"{score:.2f}")
    _console().print(table)


# -- main ------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worldlink",
        description="WorldLink — reference inference and mention linking over a world snapshot",
    )
    parser.add_argument("--snapshot", "-s", help="World snapshot JSON file")
    sub = parser.add_subparsers(dest="command", required=True)

    # classify
    p = sub.add_parser("classify", help="Classify every field of an element")
    p.add_argument("element_id")

    # show
    p = sub.add_parser("show", help="Outgoing references of an element")
    p.add_argument("element_id")

    # reverse
    p = sub.add_parser("reverse", help="Elements referencing an element")
    p.add_argument("element_id")
    p.add_argument("--raw", action="store_true", help="One row per raw field name")

    # detect
    p = sub.add_parser("detect", help="Detect mentions of known elements")
    p.add_argument("element_id", nargs="?")
    p.add_argument("--field", "-f", help="Text field of the element (default: settings)")
    p.add_argument("--text", "-t", help="Scan this text instead of an element")

    # link
    p = sub.add_parser("link", help="Link every unlinked mention in an element's text")
    p.add_argument("element_id")
    p.add_argument("--field", "-f", help="Text field of the element (default: settings)")
    p.add_argument("--apply", action="store_true", help="Save the result to the snapshot file")
    p.add_argument("--no-rewrite", action="store_true",
                   help="Only update reference fields, leave the text alone")

    # search
    p = sub.add_parser("search", help="Look up elements by name")
    p.add_argument("query")
    p.add_argument("--category", "-c")

    return parser


_COMMANDS = {
    "classify": _classify,
    "show":     _show,
    "reverse":  _reverse,
    "detect":   _detect,
    "link":     _link,
    "search":   _search,
}


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())
    logger.debug("command %s", args.command)
    _COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    main()
