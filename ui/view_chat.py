import flet as ft

import ui_config as cfg
import ui_markdown
import ui_style as style


def _avatar(icon, bgcolor: str) -> ft.Control:
    return ft.Container(
        width=32,
        height=32,
        bgcolor=bgcolor,
        border_radius=16,
        alignment=ft.alignment.center,
        content=ft.Icon(icon, size=18, color=ft.colors.WHITE),
    )


def build_message_item(message, *, open_link_handler, open_url) -> ft.Control:
    is_user = message.role == "user"
    body: list[ft.Control] = [
        ft.Text("You" if is_user else "Gemini", weight=ft.FontWeight.W_700, color=style.TEXT_MUTED),
    ]
    if message.image:
        body.append(
            ft.Container(
                content=ft.Image(src_base64=message.image.split(",", 1)[-1], width=320, fit=ft.ImageFit.CONTAIN),
                border=ft.border.all(1, style.BORDER),
                border_radius=10,
            )
        )
    body.append(ui_markdown.render_markdown(message.text, open_link_handler))
    if not is_user:
        chips = ui_markdown.render_sources(message.sources, open_url)
        if chips is not None:
            body.append(chips)

    return ft.Container(
        padding=16 if not is_user else ft.padding.symmetric(horizontal=16, vertical=4),
        bgcolor=None if is_user else style.SURFACE,
        border_radius=10,
        content=ft.Row(
            [
                _avatar(ft.icons.PERSON if is_user else ft.icons.AUTO_AWESOME, style.USER_AVATAR if is_user else style.MODEL_AVATAR),
                ft.Column(body, spacing=8, expand=True),
            ],
            spacing=16,
            vertical_alignment=ft.CrossAxisAlignment.START,
        ),
    )


def _feature_card(icon, color: str, title: str, description: str) -> ft.Control:
    return ft.Container(
        width=200,
        padding=16,
        bgcolor=style.SURFACE,
        border_radius=10,
        content=ft.Column(
            [
                ft.Icon(icon, size=32, color=color),
                ft.Text(title, weight=ft.FontWeight.W_600, color=style.TEXT_MUTED),
                ft.Text(description, size=12, color=style.TEXT_FAINT, text_align=ft.TextAlign.CENTER),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            spacing=6,
        ),
    )


def build_welcome_screen() -> ft.Control:
    return ft.Container(
        expand=True,
        alignment=ft.alignment.center,
        padding=32,
        content=ft.Column(
            [
                ft.Icon(ft.icons.AUTO_AWESOME, size=64, color=style.ACCENT),
                ft.Text("Gemini Pro Agent", size=34, weight=ft.FontWeight.W_700, color=style.TEXT_MUTED),
                ft.Text(
                    "Your versatile AI assistant. Create multiple chats, ground answers in local sources "
                    "or Google services, and fine-tune the model's behavior.",
                    color=style.TEXT_FAINT,
                    text_align=ft.TextAlign.CENTER,
                    width=640,
                ),
                ft.Container(height=16),
                ft.Row(
                    [
                        _feature_card(ft.icons.CHAT_BUBBLE_OUTLINE, "#2DD4BF", "Multi-Chat", "Organize your work with multiple, persistent conversations."),
                        _feature_card(ft.icons.DESCRIPTION_OUTLINED, "#C084FC", "Source Grounding", "Provide your own documents for the AI to use as context."),
                        _feature_card(ft.icons.PSYCHOLOGY_OUTLINED, "#F472B6", "Thinking Mode", "Allocate a 'thinking budget' for more complex reasoning tasks."),
                        _feature_card(ft.icons.PLACE_OUTLINED, "#FB923C", "Maps & Search", "Get up-to-date, location-aware answers from Google."),
                    ],
                    alignment=ft.MainAxisAlignment.CENTER,
                    wrap=True,
                    spacing=16,
                    run_spacing=16,
                ),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            alignment=ft.MainAxisAlignment.CENTER,
            spacing=8,
            scroll=ft.ScrollMode.AUTO,
        ),
    )


def build_composer(
    *,
    input_field: ft.Control,
    attach_button: ft.Control,
    send_button: ft.Control,
    stop_button: ft.Control,
    image_preview: ft.Control,
    error_text: ft.Control,
) -> ft.Control:
    box = ft.Container(
        bgcolor=style.SURFACE,
        border=ft.border.all(1, style.BORDER),
        border_radius=10,
        padding=8,
        content=ft.Column(
            [
                image_preview,
                ft.Row(
                    [input_field, attach_button, stop_button, send_button],
                    vertical_alignment=ft.CrossAxisAlignment.END,
                    spacing=4,
                ),
            ],
            spacing=6,
            tight=True,
        ),
    )
    return ft.Container(
        padding=ft.padding.only(left=24, right=24, bottom=20, top=12),
        border=ft.border.only(top=ft.BorderSide(1, style.BORDER)),
        content=ft.Row(
            [ft.Container(width=cfg.CHAT_MAX_WIDTH, content=ft.Column([box, error_text], spacing=6, tight=True))],
            alignment=ft.MainAxisAlignment.CENTER,
        ),
    )


def build_chat_tab(*, chat_list: ft.Control, welcome: ft.Control, composer: ft.Control) -> ft.Control:
    return ft.Column(
        [
            ft.Stack([chat_list, welcome], expand=True),
            composer,
        ],
        expand=True,
        spacing=0,
    )
