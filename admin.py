import asyncio
import streamlit as st
import pandas as pd

from crm_admin.core.logger import setup_logging, logger
from crm_admin.models.criteria import ALL
from crm_admin.services.record_kinds import RECORD_KINDS, BOOKINGS, CONSULTATIONS
from crm_admin.services.view_controller import ViewController, log_diagnostic

# Page Config
st.set_page_config(
    page_title="CRM Admin",
    page_icon="🩺",
    layout="wide"
)

if "logging_ready" not in st.session_state:
    setup_logging()
    st.session_state.logging_ready = True

SORT_LABELS = {
    "newest": "Newest First",
    "oldest": "Oldest First",
    "name": "Sort by Name",
    "package": "Sort by Package",
}

SUBTITLES = {
    CONSULTATIONS.key: "Manage all consultation requests in one place",
    BOOKINGS.key: "Manage all package bookings in one place",
}


def report_failure(message, exc):
    # Diagnostics go to the log; the screen keeps showing the last good data
    log_diagnostic(message, exc)
    st.session_state.setdefault("diagnostics", []).append(message)


def get_controller(kind_key: str) -> ViewController:
    controllers = st.session_state.setdefault("controllers", {})
    if kind_key not in controllers:
        controller = ViewController(RECORD_KINDS[kind_key], diagnostics=report_failure)
        with st.spinner("Loading..."):
            asyncio.run(controller.activate())
        controllers[kind_key] = controller
    return controllers[kind_key]


def widget_key(kind_key: str, name: str) -> str:
    return f"{kind_key}__{name}"


def reset_widgets(controller: ViewController):
    criteria = controller.criteria.value
    st.session_state[widget_key(controller.kind.key, "search")] = criteria.search_term
    for f in controller.kind.filters:
        st.session_state[widget_key(controller.kind.key, f.name)] = criteria.selected(f.name)
    st.session_state[widget_key(controller.kind.key, "sort")] = criteria.sort.value


def on_clear(controller: ViewController):
    controller.clear_filters()
    reset_widgets(controller)


def on_confirm_delete(controller: ViewController, record_id: str):
    asyncio.run(controller.delete(record_id, confirm=lambda _prompt: True))
    st.session_state.pending_delete = None


def render_filters(controller: ViewController):
    kind = controller.kind
    if widget_key(kind.key, "search") not in st.session_state:
        reset_widgets(controller)

    columns = st.columns([2] + [1] * len(kind.filters))
    search_key = widget_key(kind.key, "search")
    columns[0].text_input(
        "Search",
        key=search_key,
        placeholder="Search by name, email, contact, place...",
        on_change=lambda: controller.set_search_term(st.session_state[search_key]),
    )

    for column, f in zip(columns[1:], kind.filters):
        key = widget_key(kind.key, f.name)
        column.selectbox(
            f.label,
            options=[ALL] + list(f.options),
            format_func=lambda value, label=f.label: label if value == ALL else value,
            key=key,
            on_change=lambda name=f.name, key=key: controller.set_filter(name, st.session_state[key]),
        )

    sort_key = widget_key(kind.key, "sort")
    st.selectbox(
        "Sort",
        options=[k.value for k in kind.sort_keys],
        format_func=lambda value: SORT_LABELS[value],
        key=sort_key,
        on_change=lambda: controller.set_sort(st.session_state[sort_key]),
    )

    if controller.view.filters_active:
        st.button("Clear Filters", on_click=on_clear, args=(controller,))


def records_frame(controller: ViewController) -> pd.DataFrame:
    rows = []
    for record in controller.view.records:
        row = {
            "Name": record.name,
            "Contact": record.contact,
            "Location": record.place,
            "Diabetes Duration": record.duration,
            "Date": record.display_date(),
        }
        if controller.kind is BOOKINGS:
            row["Email"] = record.email
            row["Package"] = record.package_booked
        rows.append(row)
    return pd.DataFrame(rows)


def render_table(controller: ViewController):
    view = controller.view
    if not view.records:
        hint = " Try adjusting your search." if view.criteria.search_term else ""
        st.info(f"No {controller.kind.plural} found.{hint}")
        return

    st.dataframe(records_frame(controller), use_container_width=True, hide_index=True)

    pending = st.session_state.get("pending_delete")
    for index, record in enumerate(view.records):
        row_key = f"{controller.kind.key}_{index}"
        name_col, action_col = st.columns([4, 1])
        name_col.write(f"**{record.name or 'N/A'}** · {record.contact or ''} · {record.display_date()}")
        if action_col.button("Delete", key=f"delete_{row_key}", disabled=not record.id):
            st.session_state.pending_delete = record.id
            pending = record.id
        if record.id and pending == record.id:
            st.warning(controller.kind.delete_prompt)
            yes_col, no_col = st.columns(2)
            yes_col.button(
                "Yes, delete",
                key=f"confirm_{row_key}",
                on_click=on_confirm_delete,
                args=(controller, record.id),
            )
            if no_col.button("Cancel", key=f"cancel_{row_key}"):
                st.session_state.pending_delete = None
                st.rerun()


def render_screen(kind_key: str):
    controller = get_controller(kind_key)
    kind = controller.kind

    head_col, refresh_col = st.columns([4, 1])
    head_col.title(kind.title)
    head_col.caption(SUBTITLES[kind.key])
    if refresh_col.button("Refresh Data", key=f"refresh_{kind.key}"):
        with st.spinner("Loading..."):
            asyncio.run(controller.refresh())

    for message in st.session_state.pop("diagnostics", []):
        st.error(message)

    render_filters(controller)

    view = controller.view
    st.caption(view.summary)
    st.metric(f"Total {kind.plural}", view.total_count)

    render_table(controller)


# Navigation
st.sidebar.title("CRM")
if "page" not in st.session_state:
    st.session_state.page = None

for kind_key, label in ((CONSULTATIONS.key, "Consultations"), (BOOKINGS.key, "Bookings")):
    if st.sidebar.button(label, use_container_width=True):
        st.session_state.page = kind_key

if st.sidebar.button("Logout", use_container_width=True):
    # No session to end; logging out just goes back to the landing page
    logger.info("User logged out")
    st.session_state.page = None

if st.session_state.page:
    render_screen(st.session_state.page)
else:
    st.title("CRM Admin Console")
    st.info("Choose Consultations or Bookings in the sidebar.")

# Footer
st.markdown("---")
st.caption("CRM Admin Console")
