"""
Streamlit Frontend for Bearpaw Cabin Manager

The everyday interface for whoever is looking after the cabin.

DESIGN PRINCIPLES:
1. One page per list, each with the same table / add / edit / delete layout
2. Nothing is saved without an explicit "Add", "Save" or "Delete"
3. Derived views (budget charts, projections) are recomputed on every visit
4. A failed projection is one clear error, never a half-filled table

Run with:
    streamlit run app/main.py
"""

import asyncio
from decimal import Decimal
from typing import Any, Callable, Optional

import streamlit as st

from bearpaw.config import validate_all_settings
from bearpaw.models.items import (
    BudgetType,
    Collection,
    InventoryState,
    InventoryType,
    MediaType,
)
from bearpaw.orchestrator import AppComponents, create_app_components
from bearpaw.projections import ProjectionError, projected_cost_by_source
from bearpaw.services.storage import NotFoundError, StorageError


st.set_page_config(
    page_title="Bearpaw Cabin",
    page_icon="🏕️",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def _money(value: Optional[Decimal]) -> str:
    return "" if value is None else f"${value:,.2f}"


def _optional_text(value: str) -> Optional[str]:
    return value.strip() or None


def _index_of(options: list, value: Any) -> int:
    return options.index(value) if value in options else 0


def _submitted(record: Optional[Any]) -> bool:
    return st.form_submit_button("Save" if record is not None else "Add", type="primary")


def changed_fields(record: Any, payload: dict[str, Any]) -> dict[str, Any]:
    """Keep only the payload fields whose value differs from the record."""
    current = record.model_dump(mode="json")
    return {name: value for name, value in payload.items() if str(current.get(name)) != str(value)}


# ---------------------------------------------------------------------------
# Forms, one per collection. Given a record they pre-fill from it for
# editing, otherwise they start blank. Each returns the payload or None.
# ---------------------------------------------------------------------------

def budget_form(record: Optional[Any] = None) -> Optional[dict[str, Any]]:
    types = list(BudgetType)
    name = st.text_input("Name *", value=record.name if record else "")
    budget_type = st.selectbox(
        "Type", options=types, index=_index_of(types, record.type if record else None),
        format_func=lambda t: t.value,
    )
    cost = st.number_input(
        "Cost *", min_value=0.0, step=0.01, format="%.2f",
        value=float(record.cost) if record else 0.0,
    )
    payment_date = st.date_input("Payment date", value=record.payment_date if record else None)
    if not _submitted(record):
        return None
    if not name.strip():
        st.error("Please enter a name")
        return None
    return {
        "name": name.strip(),
        "type": budget_type.value,
        "cost": str(cost),
        "payment_date": payment_date.isoformat() if payment_date else None,
    }


def ideas_form(record: Optional[Any] = None) -> Optional[dict[str, Any]]:
    description = st.text_input("Description *", value=record.description if record else "")
    price = st.number_input(
        "Price (optional)", min_value=0.0, step=0.01, format="%.2f",
        value=float(record.price) if record and record.price is not None else 0.0,
    )
    notes = st.text_area("Notes (optional)", value=(record.notes or "") if record else "")
    if not _submitted(record):
        return None
    if not description.strip():
        st.error("Please enter a description")
        return None
    return {
        "description": description.strip(),
        "price": str(price) if price else None,
        "notes": _optional_text(notes),
    }


def inventory_form(record: Optional[Any] = None) -> Optional[dict[str, Any]]:
    types = list(InventoryType)
    states = [None] + list(InventoryState)
    name = st.text_input("Name *", value=record.name if record else "")
    inventory_type = st.selectbox(
        "Type", options=types, index=_index_of(types, record.type if record else None),
        format_func=lambda t: t.value,
    )
    st.caption("Quantity and replacement date apply to consumables; state to everything else.")
    quantity = st.number_input(
        "Quantity", min_value=0, step=1,
        value=(record.quantity or 0) if record else 0,
    )
    replacement_date = st.date_input(
        "Replacement date", value=record.replacement_date if record else None
    )
    state = st.selectbox(
        "State", options=states, index=_index_of(states, record.state if record else None),
        format_func=lambda s: "-" if s is None else s.value,
    )
    if not _submitted(record):
        return None
    if not name.strip():
        st.error("Please enter a name")
        return None
    return {
        "name": name.strip(),
        "type": inventory_type.value,
        "quantity": int(quantity),
        "replacement_date": replacement_date.isoformat() if replacement_date else None,
        "state": state.value if state else None,
    }


def movies_games_form(record: Optional[Any] = None) -> Optional[dict[str, Any]]:
    types = list(MediaType)
    name = st.text_input("Title *", value=record.name if record else "")
    media_type = st.selectbox(
        "Type", options=types, index=_index_of(types, record.type if record else None),
        format_func=lambda t: t.value,
    )
    players = st.text_input("Players (games only)", value=(record.players or "") if record else "")
    if not _submitted(record):
        return None
    if not name.strip():
        st.error("Please enter a title")
        return None
    return {"name": name.strip(), "type": media_type.value, "players": _optional_text(players)}


def needs_form(record: Optional[Any] = None) -> Optional[dict[str, Any]]:
    description = st.text_input("Description *", value=record.description if record else "")
    price = st.number_input(
        "Price (optional)", min_value=0.0, step=0.01, format="%.2f",
        value=float(record.price) if record and record.price is not None else 0.0,
    )
    quantity = st.number_input("Quantity", min_value=1, step=1, value=record.quantity if record else 1)
    if not _submitted(record):
        return None
    if not description.strip():
        st.error("Please enter a description")
        return None
    return {
        "description": description.strip(),
        "price": str(price) if price else None,
        "quantity": int(quantity),
    }


def tools_form(record: Optional[Any] = None) -> Optional[dict[str, Any]]:
    name = st.text_input("Name *", value=record.name if record else "")
    quantity = st.number_input("Quantity", min_value=0, step=1, value=record.quantity if record else 1)
    electric = st.checkbox("Electric", value=record.electric if record else False)
    consumable = st.checkbox("Consumable", value=record.consumable if record else False)
    if not _submitted(record):
        return None
    if not name.strip():
        st.error("Please enter a name")
        return None
    return {
        "name": name.strip(),
        "quantity": int(quantity),
        "electric": electric,
        "consumable": consumable,
    }


RecordForm = Callable[[Optional[Any]], Optional[dict[str, Any]]]

PAGES: dict[str, tuple[Collection, RecordForm]] = {
    "💵 Budget": (Collection.BUDGET_ITEMS, budget_form),
    "💡 Ideas": (Collection.IDEAS_ITEMS, ideas_form),
    "📦 Inventory": (Collection.INVENTORY_ITEMS, inventory_form),
    "🎬 Movies & Games": (Collection.MOVIES_GAMES, movies_games_form),
    "🛒 Needs": (Collection.NEEDS_ITEMS, needs_form),
    "🔧 Tools": (Collection.TOOLS, tools_form),
}


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("🏕️ Bearpaw Cabin")
    st.sidebar.markdown("---")
    page = st.sidebar.radio(
        "Navigate to:",
        list(PAGES) + ["📈 Projections", "⚙️ Settings"],
        index=0,
    )

    if page in PAGES:
        collection, form = PAGES[page]
        render_collection_page(components, page, collection, form)
    elif page == "📈 Projections":
        render_projections_page(components)
    else:
        render_settings_page()


def render_collection_page(
    components: AppComponents,
    title: str,
    collection: Collection,
    form: RecordForm,
):
    """Table, add and edit forms and delete control for one collection."""
    repository = components.repositories.for_collection(collection)
    st.title(title)
    if collection == Collection.BUDGET_ITEMS:
        render_budget_charts(components)

    with st.expander("➕ Add", expanded=False):
        with st.form(f"add_{collection.value}", clear_on_submit=True):
            payload = form(None)
        if payload is not None:
            try:
                run_async(repository.create(payload))
                st.success("Saved")
                st.rerun()
            except StorageError as e:
                st.error(f"Failed to save: {e}")
            except ValueError as e:
                st.error(f"Please check the values: {e}")

    try:
        records = run_async(repository.list())
    except StorageError as e:
        st.error(f"Could not load {collection.value}: {e}")
        return

    if not records:
        st.info("Nothing here yet. Use 'Add' to create the first entry.")
        return

    st.dataframe(
        [record.model_dump(mode="json") for record in records],
        use_container_width=True,
        hide_index=True,
    )

    selected = st.selectbox(
        "Select an entry",
        options=records,
        format_func=lambda r: f"{getattr(r, 'name', None) or getattr(r, 'description', '')} (#{r.id})",
        key=f"select_{collection.value}",
    )
    if selected is None:
        return

    with st.expander("✏️ Edit", expanded=False):
        with st.form(f"edit_{collection.value}_{selected.id}"):
            payload = form(selected)
        if payload is not None:
            changes = changed_fields(selected, payload)
            if not changes:
                st.info("Nothing changed")
            else:
                try:
                    run_async(repository.update(selected.id, changes))
                    st.success("Saved")
                    st.rerun()
                except NotFoundError:
                    st.error("This entry was deleted elsewhere")
                except StorageError as e:
                    st.error(f"Failed to save: {e}")
                except ValueError as e:
                    st.error(f"Please check the values: {e}")

    if st.button("🗑️ Delete", key=f"delete_{collection.value}"):
        try:
            run_async(repository.delete(selected.id))
            st.rerun()
        except StorageError as e:
            st.error(f"Failed to delete: {e}")


def render_budget_charts(components: AppComponents):
    """Monthly bar chart and yearly breakdown above the budget table."""
    try:
        monthly = run_async(components.charts.monthly())
        categories = run_async(components.charts.categories())
    except StorageError as e:
        st.error(f"Could not load budget charts: {e}")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Monthly spending")
        st.bar_chart(
            {"Month": [m.label for m in monthly], "Total": [float(m.total) for m in monthly]},
            x="Month",
            y="Total",
        )
    with col2:
        st.subheader("Yearly breakdown")
        if categories:
            st.bar_chart(
                {"Category": [c.label for c in categories], "Total": [float(c.total) for c in categories]},
                x="Category",
                y="Total",
            )
        else:
            st.info("No spending recorded for this year.")


def render_projections_page(components: AppComponents):
    """Projected items timeline and cost by source."""
    st.title("📈 Projections")
    st.markdown("Needs, consumables and upcoming one-time expenses, soonest first.")

    try:
        projected = run_async(components.aggregator.project())
    except ProjectionError as e:
        st.error(f"Failed to load projections: {e}")
        return

    if not projected:
        st.info("Nothing projected.")
        return

    st.dataframe(
        [
            {
                "Source": item.source.value,
                "Description": item.description,
                "Quantity": item.quantity,
                "Cost": _money(item.cost),
                "Date": item.date.isoformat() if item.date else "",
            }
            for item in projected
        ],
        use_container_width=True,
        hide_index=True,
    )

    st.subheader("Projected cost by source")
    by_source = projected_cost_by_source(projected)
    if by_source:
        st.bar_chart(
            {"Source": [s.label for s in by_source], "Total": [float(s.total) for s in by_source]},
            x="Source",
            y="Total",
        )
    else:
        st.info("No projected costs.")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")
    st.markdown("### Configuration Status")

    status = validate_all_settings()
    for name in ("datastore", "app"):
        if status.get(name, False):
            st.success(f"✅ {name} settings - OK")
        else:
            st.error(f"❌ {name} settings - {status.get(f'{name}_error', 'Not configured')}")

    st.markdown("---")
    st.markdown(
        "Configure the application with environment variables or a `.env` file. "
        "Set `STORE_BACKEND=memory` to try it without Datastore."
    )


if __name__ == "__main__":
    main()
