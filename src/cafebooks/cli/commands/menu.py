"""Menu item and recipe commands."""

import click
from cafebooks.cli.error_handling import handle_domain_error, parse_amount_or_exit
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.events import EventService
from cafebooks.domain.recipe import RecipeCostService
from cafebooks.utils.amount_parser import format_amount, to_money


@click.group()
def menu_group():
    """Manage menu items sold at the point of sale."""
    pass


@menu_group.command("add")
@click.argument("name", metavar="NAME")
@click.argument("price", metavar="PRICE")
@click.option("--category", default="", help="Menu category")
@click.option("--recipe", "recipe_id", help="Recipe ID; its ingredient cost becomes the COGS of each sale")
@click.option("--taxable", is_flag=True, help="Item is subject to tax")
@click.option("--tax-rate", "tax_rate_id", help="Tax rate ID overriding the default rate")
@click.pass_context
def add_menu_item(
    ctx,
    name: str,
    price: str,
    category: str,
    recipe_id: str | None,
    taxable: bool,
    tax_rate_id: str | None,
):
    """Add a menu item.

    Examples:
        cafebooks menu add "Latte" 95,000 --category coffee --recipe recipe-1a2b3c4d --taxable
    """
    service = EventService(get_state(ctx))
    sell_price = parse_amount_or_exit(ctx, price, "price")
    try:
        pos_item = service.add_pos_item(
            name=name,
            category=category,
            sell_price=sell_price,
            recipe_id=recipe_id,
            is_taxable=taxable,
            tax_rate_id=tax_rate_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created menu item '{pos_item.name}' (ID: {pos_item.id})")


@menu_group.command("list")
@click.pass_context
def list_menu_items(ctx):
    """List menu items."""
    items = sorted(get_state(ctx).pos_items, key=lambda p: (p.category, p.name))
    if not items:
        click.echo("No menu items found.")
        return

    click.echo("\nMenu:")
    click.echo("-" * 70)
    for item in items:
        tax = " (taxable)" if item.is_taxable else ""
        click.echo(f"{item.id:14s} | {item.category:12s} | {item.name:20s} | {format_amount(item.sell_price):>12s}{tax}")


@click.group()
def recipe_group():
    """Manage recipes."""
    pass


@recipe_group.command("add")
@click.argument("name", metavar="NAME")
@click.argument("price", metavar="PRICE")
@click.option(
    "--ingredient",
    "ingredients",
    multiple=True,
    required=True,
    help="Ingredient as ITEM:UNIT:QUANTITY (repeatable)",
)
@click.option("--category", default="", help="Recipe category")
@click.option("--notes", help="Preparation notes")
@click.pass_context
def add_recipe(ctx, name: str, price: str, ingredients: tuple[str, ...], category: str, notes: str | None):
    """Add a recipe.

    Ingredient names and units must match the purchased items so their
    latest prices can be found.

    Examples:
        cafebooks recipe add "Latte" 95000 --ingredient "Milk:لیتر:0.2" --ingredient "Coffee beans:کیلوگرم:0.018"
    """
    service = EventService(get_state(ctx))
    base_price = parse_amount_or_exit(ctx, price, "price")

    parsed = []
    for ingredient in ingredients:
        parts = ingredient.rsplit(":", 2)
        if len(parts) != 3:
            click.echo(f"Error: Invalid ingredient '{ingredient}'. Use ITEM:UNIT:QUANTITY", err=True)
            ctx.exit(1)
        item_name, unit, quantity = parts
        parsed.append((item_name, unit, parse_amount_or_exit(ctx, quantity, "ingredient quantity")))

    try:
        recipe = service.add_recipe(
            name=name, category=category, base_sell_price=base_price, ingredients=parsed, prep_notes=notes
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created recipe '{recipe.name}' (ID: {recipe.id})")


@recipe_group.command("list")
@click.pass_context
def list_recipes(ctx):
    """List recipes with their current ingredient cost."""
    state = get_state(ctx)
    costing = RecipeCostService(state)
    if not state.recipes:
        click.echo("No recipes found.")
        return

    click.echo("\nRecipes:")
    click.echo("-" * 70)
    for recipe in sorted(state.recipes, key=lambda r: r.name):
        cost = to_money(costing.get_recipe_cost(recipe))
        click.echo(
            f"{recipe.id:16s} | {recipe.name:20s} | price {format_amount(recipe.base_sell_price):>10s} "
            f"| cost {format_amount(cost):>10s}"
        )


def register_commands(cli):
    """Register menu and recipe commands with main CLI."""
    cli.add_command(menu_group, name="menu")
    cli.add_command(recipe_group, name="recipe")
