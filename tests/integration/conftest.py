"""Fixtures that lay out a small project on disk: sources plus serialised bundles."""

from pathlib import Path

import pytest

from code_facts.models import (
    AtomForm,
    Clause,
    ModuleBundle,
    RemoteCallNode,
    SpecForm,
    StructFieldForm,
    TypeAliasForm,
    TypeForm,
    UserTypeForm,
)
from tests.builders import (
    atom,
    block,
    bundle,
    call,
    capture_local,
    const,
    definition,
    fun_type,
    kw,
    lst,
    pair,
    remote,
    t,
    var,
)

CART_SOURCE = """\
defmodule Shop.Cart do
  defstruct items: [], total: 0
  @type t :: %{items: list(), total: integer()}
  @spec add(t(), map()) :: t()
  def add(cart, item) when is_map(item) do
    items = [item | cart.items]
    %{cart | items: items, total: Enum.sum(prices(items))}
  end

  defp prices(items) do
    Enum.map(items, &price/1)
  end

  defp price(%{price: p}), do: p
end
"""


def cart_bundle(source_path: str) -> ModuleBundle:
    cart_items = RemoteCallNode(module=var("cart", line=6), function="items", meta={"line": 6, "no_parens": True})
    add = Clause(
        line=5,
        params=[var("cart", line=5), var("item", line=5)],
        guard=remote(":erlang", "is_map", var("item", line=5), line=5),
        body=block(
            call("=", var("items", line=6), lst(call("|", var("item", line=6), cart_items)), line=6),
            call(
                "%{}",
                call(
                    "|",
                    var("cart", line=7),
                    kw(
                        items=var("items", line=7),
                        total=remote("Enum", "sum", call("prices", var("items", line=7), line=7), line=7),
                    ),
                ),
                line=7,
            ),
        ),
    )
    prices = Clause(
        line=10,
        params=[var("items", line=10)],
        body=remote("Enum", "map", var("items", line=11), capture_local("price", 1, line=11), line=11),
    )
    price = Clause(
        line=14,
        params=[call("%{}", pair(atom("price"), var("p", line=14)), line=14)],
        body=var("p", line=14),
    )
    map_any = TypeForm(name="map", args="any")
    return bundle(
        "Shop.Cart",
        definition("add", add),
        definition("prices", prices, kind="defp"),
        definition("price", price, kind="defp"),
        source_path=source_path,
        specs=[
            SpecForm(
                name="add",
                arity=2,
                line=4,
                clauses=[fun_type([UserTypeForm(name="t"), map_any], UserTypeForm(name="t"))],
            )
        ],
        types=[
            TypeAliasForm(
                name="t",
                line=3,
                body=t(
                    "map",
                    t("map_field_exact", AtomForm(value="items"), t("list")),
                    t("map_field_exact", AtomForm(value="total"), t("integer")),
                ),
            )
        ],
        struct_fields=[
            StructFieldForm(field="items", default=lst()),
            StructFieldForm(field="total", default=const(0)),
        ],
    )


def checkout_bundle() -> ModuleBundle:
    run = Clause(
        line=3,
        params=[var("cart"), var("item")],
        body=call(
            "case",
            remote("Shop.Cart", "add", var("cart"), var("item"), line=3),
            kw(do=lst(call("->", lst(var("c")), call("charge", var("c")), line=4))),
            line=3,
        ),
    )
    return bundle(
        "Shop.Checkout",
        definition("run", run),
        source_path="/nowhere/lib/shop/checkout.ex",
    )


@pytest.fixture
def shop_project(tmp_path: Path) -> dict[str, str]:
    """Write the cart source plus bundle JSON files; return artifact paths by module."""
    source = tmp_path / "lib" / "shop" / "cart.ex"
    source.parent.mkdir(parents=True)
    source.write_text(CART_SOURCE, encoding="utf-8")

    bundles_dir = tmp_path / "_build"
    bundles_dir.mkdir()
    artifacts = {}
    for b in (cart_bundle(str(source)), checkout_bundle()):
        path = bundles_dir / f"{b.module}.json"
        path.write_text(b.model_dump_json(), encoding="utf-8")
        artifacts[b.module] = str(path)

    corrupt = bundles_dir / "Shop.Broken.json"
    corrupt.write_text("{not json", encoding="utf-8")
    artifacts["Shop.Broken"] = str(corrupt)
    artifacts["source"] = str(source)
    return artifacts
