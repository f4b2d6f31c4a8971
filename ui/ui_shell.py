import flet as ft

import ui_style as style


COMPACT_WIDTH = 900


def _window_width(page) -> float:
    window = getattr(page, "window", None)
    width = getattr(window, "width", None) or getattr(page, "window_width", None)
    return width if isinstance(width, (int, float)) and width > 0 else 1100


def build_shell(
    *,
    page: ft.Page,
    sidebar_width: int,
    sessions_panel: ft.Control,
    settings_holder: ft.Control,
    chat_tab: ft.Control,
) -> dict:
    layout = {"sidebar_open": None}

    sidebar_container = ft.Container(
        width=sidebar_width,
        bgcolor=style.SIDEBAR_BG,
        padding=16,
        border=ft.border.only(right=ft.BorderSide(1, style.BORDER)),
        content=ft.Column(
            [
                ft.Container(content=sessions_panel, expand=2),
                ft.Container(content=settings_holder, expand=3),
                ft.Text("Powered by Gemini", size=11, color=style.TEXT_FAINT, text_align=ft.TextAlign.CENTER),
            ],
            spacing=8,
            horizontal_alignment=ft.CrossAxisAlignment.STRETCH,
        ),
    )

    def apply_responsive_layout():
        compact = _window_width(page) < COMPACT_WIDTH
        if layout["sidebar_open"] is None:
            # first layout pass decides; after that only the menu button toggles
            layout["sidebar_open"] = not compact
        sidebar_container.visible = layout["sidebar_open"]
        menu_button.visible = compact or not layout["sidebar_open"]

    def toggle_sidebar(_=None):
        layout["sidebar_open"] = not layout["sidebar_open"]
        apply_responsive_layout()
        page.update()

    menu_button = ft.IconButton(
        icon=ft.icons.MENU,
        tooltip="Menu",
        on_click=toggle_sidebar,
        icon_color=style.TEXT_PRIMARY,
    )

    main_container = ft.Container(
        expand=True,
        bgcolor=style.BG,
        content=ft.Stack(
            [
                chat_tab,
                ft.Container(content=menu_button, left=8, top=8),
            ],
            expand=True,
        ),
    )

    def on_resize(_=None):
        apply_responsive_layout()
        page.update()

    root_control = ft.Row([sidebar_container, main_container], expand=True, spacing=0)

    return {
        "root_control": root_control,
        "apply_responsive_layout": apply_responsive_layout,
        "on_resize": on_resize,
    }
