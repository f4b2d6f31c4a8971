import flet as ft

import ui_style as style


def build_session_tile(
    session,
    *,
    is_active: bool,
    on_select,
    on_rename,
    on_toggle_rename,
    on_delete,
) -> ft.Control:
    if session.is_renaming:
        rename_field = ft.TextField(
            value=session.title,
            autofocus=True,
            dense=True,
            border=ft.InputBorder.NONE,
            text_size=13,
            color=style.TEXT_PRIMARY,
            expand=True,
        )

        def submit(_=None):
            value = (rename_field.value or "").strip()
            if value:
                on_rename(session.id, value)
            else:
                on_toggle_rename(session.id, False)

        rename_field.on_submit = submit
        rename_field.on_blur = submit
        label = rename_field
    else:
        label = ft.Text(
            session.title,
            size=13,
            color=style.TEXT_PRIMARY,
            max_lines=1,
            overflow=ft.TextOverflow.ELLIPSIS,
            expand=True,
        )

    return ft.Container(
        padding=ft.padding.symmetric(horizontal=8, vertical=2),
        border_radius=8,
        bgcolor=style.ACCENT_SOFT if is_active else None,
        on_click=lambda _: on_select(session.id),
        content=ft.Row(
            [
                ft.Icon(ft.icons.CHAT_BUBBLE_OUTLINE, size=16, color=style.TEXT_FAINT),
                label,
                ft.IconButton(
                    icon=ft.icons.EDIT_OUTLINED,
                    icon_size=16,
                    tooltip="Rename",
                    icon_color=style.TEXT_FAINT,
                    on_click=lambda _: on_toggle_rename(session.id, True),
                ),
                ft.IconButton(
                    icon=ft.icons.DELETE_OUTLINE,
                    icon_size=16,
                    tooltip="Delete chat",
                    icon_color=style.TEXT_FAINT,
                    on_click=lambda _: on_delete(session.id),
                ),
            ],
            spacing=6,
            vertical_alignment=ft.CrossAxisAlignment.CENTER,
        ),
    )


def build_sessions_panel(*, sessions_list: ft.Control, new_chat_button: ft.Control, export_button: ft.Control) -> ft.Control:
    return ft.Column(
        [
            ft.Row(
                [
                    ft.Row(
                        [
                            ft.Icon(ft.icons.CODE, color=style.ACCENT),
                            ft.Text("Gemini Agent", size=20, weight=ft.FontWeight.W_700, color=style.TEXT_MUTED),
                        ],
                        spacing=8,
                    ),
                    ft.Row([export_button, new_chat_button], spacing=0),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            ),
            ft.Divider(height=1, color=style.BORDER),
            sessions_list,
            ft.Divider(height=1, color=style.BORDER),
        ],
        spacing=8,
        expand=True,
    )
