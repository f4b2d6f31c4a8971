import flet as ft

import ui_config as cfg
import ui_flet
import ui_style as style
import ui_text as text


def _card(*, title: str, icon, content: ft.Control) -> ft.Control:
    return ft.Container(
        padding=ft.padding.symmetric(horizontal=4, vertical=10),
        border=ft.border.only(top=ft.BorderSide(1, style.BORDER)),
        content=ft.Column(
            [
                ft.Row(
                    [
                        ft.Icon(icon, size=18, color=style.TEXT_MUTED),
                        ft.Text(title, size=16, weight=ft.FontWeight.W_600, color=style.TEXT_MUTED),
                    ],
                    spacing=8,
                ),
                content,
            ],
            spacing=10,
        ),
    )


def _slider(label: str, value, *, min_value, max_value, divisions: int, fmt, on_commit) -> ft.Control:
    caption = ft.Text(f"{label}: {fmt(value)}", size=12, color=style.TEXT_FAINT)

    def moved(e):
        caption.value = f"{label}: {fmt(e.control.value)}"
        ui_flet.safe_update(caption)

    slider = ft.Slider(
        min=min_value,
        max=max_value,
        divisions=divisions,
        value=value,
        active_color=style.ACCENT,
        on_change=moved,
        on_change_end=lambda e: on_commit(e.control.value),
    )
    return ft.Column([caption, slider], spacing=0)


def build_config_panel(config, *, on_change) -> ft.Control:
    """
    Controls for one session's ChatConfig. ``on_change(field, value)`` is
    called once per committed edit with the snake_case field name.
    """
    instruction = ft.TextField(
        label="System Instruction",
        value=config.system_instruction,
        hint_text="e.g., You are a helpful AI assistant.",
        multiline=True,
        min_lines=3,
        max_lines=6,
        text_size=12,
        bgcolor=style.INPUT_BG,
        border_color=style.BORDER,
    )
    instruction.on_blur = lambda _: on_change("system_instruction", instruction.value or "")

    grounding_switch = ft.Switch(
        label="Google Search",
        value=config.use_grounding,
        active_color=style.ACCENT,
        on_change=lambda e: on_change("use_grounding", bool(e.control.value)),
    )
    maps_switch = ft.Switch(
        label="Google Maps",
        value=config.use_maps_grounding,
        active_color=style.ACCENT,
        on_change=lambda e: on_change("use_maps_grounding", bool(e.control.value)),
    )

    def as_int(v) -> str:
        return str(int(round(float(v))))

    return _card(
        title="Configuration",
        icon=ft.icons.SETTINGS_OUTLINED,
        content=ft.Column(
            [
                instruction,
                grounding_switch,
                maps_switch,
                _slider(
                    "Thinking Budget",
                    config.thinking_budget,
                    min_value=0,
                    max_value=cfg.THINKING_BUDGET_MAX,
                    divisions=cfg.THINKING_BUDGET_MAX // cfg.THINKING_BUDGET_STEP,
                    fmt=as_int,
                    on_commit=lambda v: on_change("thinking_budget", int(round(v))),
                ),
                _slider(
                    "Temperature",
                    config.temperature,
                    min_value=0.0,
                    max_value=1.0,
                    divisions=100,
                    fmt=text.format_number,
                    on_commit=lambda v: on_change("temperature", round(float(v), 2)),
                ),
                _slider(
                    "Top P",
                    config.top_p,
                    min_value=0.0,
                    max_value=1.0,
                    divisions=100,
                    fmt=text.format_number,
                    on_commit=lambda v: on_change("top_p", round(float(v), 2)),
                ),
                _slider(
                    "Top K",
                    config.top_k,
                    min_value=1,
                    max_value=cfg.TOP_K_MAX,
                    divisions=cfg.TOP_K_MAX - 1,
                    fmt=as_int,
                    on_commit=lambda v: on_change("top_k", int(round(v))),
                ),
            ],
            spacing=6,
        ),
    )


def build_sources_panel(local_sources, *, on_add, on_remove, on_pick_file) -> ft.Control:
    """Local source entry form plus the list of sources already attached."""
    title_field = ft.TextField(
        hint_text="Source Title",
        dense=True,
        text_size=12,
        bgcolor=style.INPUT_BG,
        border_color=style.BORDER,
    )
    content_field = ft.TextField(
        hint_text="Source content...",
        multiline=True,
        min_lines=3,
        max_lines=6,
        text_size=12,
        bgcolor=style.INPUT_BG,
        border_color=style.BORDER,
    )

    def add(_=None):
        if on_add(title_field.value or "", content_field.value or ""):
            title_field.value = ""
            content_field.value = ""
            ui_flet.safe_update(title_field)
            ui_flet.safe_update(content_field)

    rows = [
        ft.Container(
            padding=ft.padding.only(left=8),
            bgcolor=style.SURFACE_ALT,
            border_radius=6,
            content=ft.Row(
                [
                    ft.Text(src.title, size=12, color=style.TEXT_PRIMARY, max_lines=1, overflow=ft.TextOverflow.ELLIPSIS, expand=True),
                    ft.IconButton(
                        icon=ft.icons.DELETE_OUTLINE,
                        icon_size=16,
                        tooltip="Remove source",
                        icon_color=style.TEXT_FAINT,
                        on_click=lambda _e, sid=src.id: on_remove(sid),
                    ),
                ],
            ),
        )
        for src in local_sources
    ]

    return _card(
        title="Sources",
        icon=ft.icons.DESCRIPTION_OUTLINED,
        content=ft.Column(
            [
                title_field,
                content_field,
                ft.Row(
                    [
                        ft.ElevatedButton("Add Source", icon=ft.icons.ADD, on_click=add, expand=True),
                        ft.IconButton(icon=ft.icons.UPLOAD_FILE, tooltip="Load text file", on_click=on_pick_file),
                    ],
                ),
                *rows,
            ],
            spacing=8,
        ),
    )
