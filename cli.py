# cli.py - interactive shell over the store API
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from app.core import CATEGORIES
from sdk.pystore import StoreClient

console = Console()
BASE_URL = os.getenv("STORE_URL", "http://127.0.0.1:8085")
c = StoreClient(base_url=BASE_URL, token=os.getenv("STORE_TOKEN"))
admin = StoreClient(base_url=BASE_URL, token=os.getenv("STORE_ADMIN_TOKEN"))

status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]], pagination: Optional[Dict[str, Any]] = None):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Products Catalog",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=26)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=7)
    table.add_column("Category", width=15)
    table.add_column("★", width=2)

    for p in products:
        table.add_row(
            p.get("id", "N/A"),
            p.get("name", "N/A"),
            f"${p.get('price', 0):.2f}",
            str(p.get("stock", 0)),
            p.get("category", "N/A"),
            "★" if p.get("featured") else "",
        )
    console.print(table)
    if pagination:
        console.print(
            f"[dim]page {pagination['current']} of {pagination['pages']} "
            f"({pagination['total']} products)[/dim]"
        )


def show_cart(cart: Dict[str, Any]):
    if not cart:
        console.print("[italic yellow]No cart data[/italic yellow]")
        return

    items = cart.get("items", [])
    total = sum(it["product"]["price"] * it["quantity"] for it in items if it.get("product"))

    title = Text()
    title.append("🛒 Shopping Cart", style="bold")
    title.append(f" - Total: ${total:.2f}", style="bold green")

    if not items:
        console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Product", style="bold", width=30)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Subtotal", justify="right", width=12)

    for it in items:
        product = it.get("product")
        if product is None:
            table.add_row("[red]Product no longer available[/red]", str(it.get("quantity", "-")), "-", "-")
            continue
        table.add_row(
            product.get("name", "Unknown"),
            str(it.get("quantity", 0)),
            f"${product.get('price', 0):.2f}",
            f"${product.get('price', 0) * it.get('quantity', 0):.2f}"
        )

    console.print(Panel(table, title=title, border_style="blue"))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper
# ---------------------------
def _error_message(e: requests.HTTPError) -> str:
    try:
        return e.response.json().get("message", str(e))
    except ValueError:
        return str(e)


def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the result, or None after printing the server's message on failure.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)
    except requests.HTTPError as e:
        status_message = f"Error: {_error_message(e)}"
        console.print(show_status(status_message, False))
        return None
    except requests.RequestException as e:
        status_message = f"Error: {e}"
        console.print(show_status(status_message, False))
        return None

    if success_msg:
        status_message = success_msg
        console.print(show_status(success_msg, True))
    return result


# ---------------------------
# Autocompletion helpers
# ---------------------------
def refresh_products():
    global product_cache
    data = try_api(c.list_products, limit=100) or {}
    product_cache = data.get("products", [])


def get_product_completer():
    if not product_cache:
        refresh_products()
    return WordCompleter([p["id"] for p in product_cache if p.get("id")], ignore_case=True)


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 10.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ PyStore",
        f"[bold blue]{BASE_URL}[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Main menu
# ---------------------------
def menu():
    console.clear()
    console.print(create_header())
    refresh_products()

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "7", "🛒 View cart"),
            ("2", "🔍 Search products", "8", "➕ Add to cart"),
            ("3", "ℹ️ Get product by ID", "9", "✏️ Update cart quantity"),
            ("4", "🆕 Create product (admin)", "10", "➖ Remove from cart"),
            ("5", "🛠️ Update stock (admin)", "11", "🧹 Clear cart"),
            ("6", "🗑️ Delete product (admin)", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 12)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            category = prompt_with_autocomplete("Category (blank for all)", completer=WordCompleter(CATEGORIES))
            page = IntPrompt.ask("Page", default=1)
            data = try_api(c.list_products, category=category or None, page=page,
                           success_msg="Products loaded successfully")
            if data is not None:
                show_products(data["products"], data["pagination"])

        elif choice == "2":
            term = prompt_with_autocomplete("Enter search text")
            data = try_api(c.search_products, term, success_msg=f"Search for '{term}' completed")
            if data is not None:
                show_products(data["products"], data["pagination"])

        elif choice == "3":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            product = try_api(c.get_product, pid, success_msg=f"Product {pid} details loaded")
            if product:
                show_products([product])

        elif choice == "4":
            name = prompt_with_autocomplete("Product name")
            description = prompt_with_autocomplete("Description")
            price = ask_float("💰 Price in dollars", default=10.0)
            category = prompt_with_autocomplete("🏷️ Category", completer=WordCompleter(CATEGORIES), default="Other")
            stock = IntPrompt.ask("📦 Stock", default=0)
            featured = Confirm.ask("Featured?", default=False)
            product = try_api(admin.create_product, name, description, price, category, stock,
                              featured=featured, success_msg=f"Product '{name}' created")
            if product:
                show_products([product])
                refresh_products()

        elif choice == "5":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            stock = IntPrompt.ask("New stock", default=0)
            product = try_api(admin.update_product, pid, stock=stock, success_msg=f"Stock for {pid} set to {stock}")
            if product:
                show_products([product])

        elif choice == "6":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            if Confirm.ask(f"[red]Delete product {pid}?[/red]"):
                try_api(admin.delete_product, pid, success_msg=f"Product {pid} deleted")
                refresh_products()

        elif choice == "7":
            cart = try_api(c.view_cart, success_msg="Cart loaded")
            if cart is not None:
                show_cart(cart)

        elif choice == "8":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            qty = IntPrompt.ask("Enter quantity", default=1)
            cart = try_api(c.add_to_cart, pid, qty, success_msg=f"Added {qty} of product {pid} to cart")
            if cart is not None:
                show_cart(cart)

        elif choice == "9":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            qty = IntPrompt.ask("New quantity", default=1)
            cart = try_api(c.update_cart, pid, qty, success_msg=f"Quantity of {pid} set to {qty}")
            if cart is not None:
                show_cart(cart)

        elif choice == "10":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            cart = try_api(c.remove_from_cart, pid, success_msg=f"Product {pid} removed from cart")
            if cart is not None:
                show_cart(cart)

        elif choice == "11":
            if Confirm.ask("Empty your cart?"):
                cart = try_api(c.clear_cart, success_msg="Cart cleared")
                if cart is not None:
                    show_cart(cart)

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Thank you for using PyStore! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
