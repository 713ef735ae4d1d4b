import argparse
import math
import sys
from typing import Callable, Dict, List, Optional

from pointscalc.errors import PersistenceError, UnknownCategoryError, ValidationError
from pointscalc.logger import get_logger
from pointscalc.models import Item
from pointscalc.report_html import DEFAULT_THEME, build_html_page, build_plaintext_listing
from pointscalc.storage import DB_PATH, SqliteBlobStorage
from pointscalc.store import CatalogStore

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_USER_ERROR = 1
EXIT_NOT_SAVED = 3


def parse_number(text: Optional[str]) -> float:
    """Lenient numeric parse for typed input; unparsable text becomes NaN."""
    if text is None:
        return math.nan
    try:
        return float(text)
    except (TypeError, ValueError):
        return math.nan


def confirm(prompt: str, assume_yes: bool = False) -> bool:
    if assume_yes:
        return True
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def show_listing(store: CatalogStore, category: Optional[str] = None) -> None:
    print(build_plaintext_listing(store, category))


def cmd_list(store: CatalogStore, args: argparse.Namespace) -> int:
    categories = store.list_categories()
    if not categories:
        print("No categories yet.")
        return EXIT_OK
    for name in categories:
        marker = "*" if name == store.active_category else " "
        print(f"{marker} {name} ({len(store.list_items(name))} items)")
    return EXIT_OK


def cmd_show(store: CatalogStore, args: argparse.Namespace) -> int:
    if args.category:
        store.switch_category(args.category)
    show_listing(store)
    return EXIT_OK


def cmd_add_category(store: CatalogStore, args: argparse.Namespace) -> int:
    name = store.create_category(args.name)
    store.switch_category(name)
    show_listing(store)
    return EXIT_OK


def cmd_delete_category(store: CatalogStore, args: argparse.Namespace) -> int:
    if args.name.strip() not in store.list_categories():
        print(f"Unknown category: {args.name}", file=sys.stderr)
        return EXIT_USER_ERROR
    prompt = (
        f'Are you sure you want to delete the entire "{args.name}" category? '
        "This will remove all items in it."
    )
    if not confirm(prompt, args.yes):
        print("Cancelled.")
        return EXIT_OK
    store.delete_category(args.name)
    show_listing(store)
    return EXIT_OK


def cmd_add(store: CatalogStore, args: argparse.Namespace) -> int:
    item = Item(
        name=args.name,
        points=parse_number(args.points),
        price=parse_number(args.price),
    )
    store.add_item(args.category, item)
    store.switch_category(args.category.strip())
    show_listing(store)
    return EXIT_OK


def cmd_edit(store: CatalogStore, args: argparse.Namespace) -> int:
    index = store.index_of(args.category, args.item_id)
    current = store.list_items(args.category)[index]
    new_item = Item(
        name=args.name if args.name is not None else current.name,
        points=parse_number(args.points) if args.points is not None else current.points,
        price=parse_number(args.price) if args.price is not None else current.price,
    )
    store.update_item(args.category, index, new_item)
    store.switch_category(args.category)
    show_listing(store)
    return EXIT_OK


def cmd_delete(store: CatalogStore, args: argparse.Namespace) -> int:
    index = store.index_of(args.category, args.item_id)
    if not confirm("Are you sure you want to delete this item?", args.yes):
        print("Cancelled.")
        return EXIT_OK
    # resolve again: the position is only trusted right before the call
    store.delete_item(args.category, store.index_of(args.category, args.item_id))
    show_listing(store)
    return EXIT_OK


def cmd_render(store: CatalogStore, args: argparse.Namespace) -> int:
    if args.category:
        store.switch_category(args.category)
    html = build_html_page(store, theme=args.theme)
    if args.output == "-":
        print(html)
    else:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(html)
        logger.info("Wrote %s", args.output)
        print(f"Wrote {args.output}")
    return EXIT_OK


def cmd_reset(store: CatalogStore, args: argparse.Namespace) -> int:
    if not confirm("Delete every category and item?", args.yes):
        print("Cancelled.")
        return EXIT_OK
    store.reset()
    print("Catalog cleared.")
    return EXIT_OK


COMMANDS: Dict[str, Callable[[CatalogStore, argparse.Namespace], int]] = {
    "list": cmd_list,
    "show": cmd_show,
    "add-category": cmd_add_category,
    "delete-category": cmd_delete_category,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "render": cmd_render,
    "reset": cmd_reset,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Catalog points redemption options and find the best value per point."
    )
    parser.add_argument("--db", default=DB_PATH, help="Path to the SQLite data file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List categories")

    p = sub.add_parser("show", help="Show a category ranked by value per point")
    p.add_argument("category", nargs="?", default=None)

    p = sub.add_parser("add-category", help="Create a category")
    p.add_argument("name")

    p = sub.add_parser("delete-category", help="Delete a category and all its items")
    p.add_argument("name")
    p.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    p = sub.add_parser("add", help="Add an item to a category (created if missing)")
    p.add_argument("category")
    p.add_argument("--name", required=True)
    p.add_argument("--points", required=True)
    p.add_argument("--price", required=True)

    p = sub.add_parser("edit", help="Edit an item by its #id")
    p.add_argument("category")
    p.add_argument("item_id", type=int)
    p.add_argument("--name", default=None)
    p.add_argument("--points", default=None)
    p.add_argument("--price", default=None)

    p = sub.add_parser("delete", help="Delete an item by its #id")
    p.add_argument("category")
    p.add_argument("item_id", type=int)
    p.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    p = sub.add_parser("render", help="Write the HTML page")
    p.add_argument("category", nargs="?", default=None)
    p.add_argument("--output", "-o", default="points_calculator.html", help="File path, or - for stdout")
    p.add_argument("--theme", choices=("dark", "light"), default=DEFAULT_THEME)

    p = sub.add_parser("reset", help="Delete every category and item")
    p.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    store = CatalogStore.open(SqliteBlobStorage(args.db))
    handler = COMMANDS[args.command]

    try:
        return handler(store, args)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USER_ERROR
    except UnknownCategoryError as e:
        print(f"Unknown category: {e.args[0]}", file=sys.stderr)
        return EXIT_USER_ERROR
    except IndexError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USER_ERROR
    except PersistenceError as e:
        logger.error("Save failed: %s", e)
        show_listing(store)
        print(
            f"Warning: changes could not be saved and may not survive: {e}",
            file=sys.stderr,
        )
        return EXIT_NOT_SAVED


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
