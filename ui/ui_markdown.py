import flet as ft

import ui_style as style
import ui_text as text


def render_markdown(md_text: str, open_link_handler) -> ft.Control:
    return ft.Markdown(
        md_text or "...",
        selectable=True,
        extension_set=ft.MarkdownExtensionSet.GITHUB_WEB,
        code_theme="atom-one-dark",
        on_tap_link=open_link_handler,
    )


def render_sources(sources, open_url) -> ft.Control | None:
    """Chip row for the citations of one model message; None when there are none."""
    if not sources:
        return None

    chips: list[ft.Control] = []
    for src in sources:
        label = ft.Text(text.clip(text.source_label(src), 48), size=11, color=style.LINK)
        row = [ft.Icon(ft.icons.PLACE_OUTLINED, size=12, color=style.LINK), label] if src.type == "maps" else [label]
        chips.append(
            ft.Container(
                content=ft.Row(row, spacing=4, tight=True),
                padding=ft.padding.symmetric(horizontal=8, vertical=4),
                bgcolor=style.SURFACE_ALT,
                border_radius=999,
                tooltip=src.uri,
                on_click=lambda _e, uri=src.uri: open_url(uri),
            )
        )

    return ft.Container(
        padding=ft.padding.only(top=10),
        border=ft.border.only(top=ft.BorderSide(1, style.BORDER)),
        content=ft.Column(
            [
                ft.Row(
                    [
                        ft.Icon(ft.icons.LINK, size=14, color=style.TEXT_FAINT),
                        ft.Text("Sources", size=11, weight=ft.FontWeight.W_600, color=style.TEXT_FAINT),
                    ],
                    spacing=4,
                ),
                ft.Row(chips, spacing=6, run_spacing=6, wrap=True),
            ],
            spacing=6,
        ),
    )
