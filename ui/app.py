#!/usr/bin/env python3
import logging
import threading
from pathlib import Path

import flet as ft
from pydantic import ValidationError

import chat_controller
import ui_config as cfg
import ui_documents as docs
import ui_filepicker as filepicker_utils
import ui_flet
import ui_geolocation
import ui_sessions_io
import ui_shell
import ui_style as style
import view_chat
import view_sessions
import view_settings
from ui_blob_store import JsonBlobStore
from ui_model_client import GeminiClient
from ui_sessions import SessionStore


logger = logging.getLogger(__name__)


def main(page: ft.Page):
    page.title = cfg.APP_TITLE
    page.window_min_width = 720
    page.window_min_height = 560
    page.theme_mode = ft.ThemeMode.DARK
    page.bgcolor = style.BG
    page.padding = 0

    blob_store = JsonBlobStore(cfg.STORE_FILE)
    writer = ui_sessions_io.SessionWriter(blob_store, cfg.SESSION_SAVE_DELAY_S)
    state = chat_controller.new_chat_state()
    composer_state = {"image": None}
    rendered = {"session_id": None, "items": {}, "config_for": None, "sources_for": None}

    client = GeminiClient(
        cfg.GEMINI_API_KEY,
        cfg.GEMINI_MODEL,
        cfg.GEMINI_API_URL,
        connect_timeout_s=cfg.STREAM_CONNECT_TIMEOUT_S,
        read_timeout_s=cfg.STREAM_READ_TIMEOUT_S,
    )

    def on_sessions_changed(sessions):
        writer.schedule(sessions)
        ui_flet.ui_call(page, refresh)

    store = SessionStore(on_change=on_sessions_changed)

    def show_snack(message, color=style.ACCENT):
        page.snack_bar = ft.SnackBar(ft.Text(message, color=style.TEXT_PRIMARY), bgcolor=color)
        page.snack_bar.open = True
        page.update()

    def open_url(url: str):
        if not url:
            return
        try:
            page.launch_url(url)
        except RuntimeError as exc:
            show_snack(f"Unable to open link: {exc}", style.DANGER)

    def open_markdown_link(e):
        open_url(getattr(e, "data", None) or "")

    chat_list = ft.ListView(expand=True, spacing=24, padding=ft.padding.symmetric(horizontal=24, vertical=24), auto_scroll=True)
    welcome = view_chat.build_welcome_screen()
    sessions_list = ft.Column(spacing=2, scroll=ft.ScrollMode.AUTO, expand=True)
    settings_holder = ft.Column(spacing=4, scroll=ft.ScrollMode.AUTO, expand=True)

    input_field = ft.TextField(
        hint_text="Ask Gemini anything, or describe an image...",
        multiline=True,
        shift_enter=True,
        min_lines=1,
        max_lines=8,
        expand=True,
        border=ft.InputBorder.NONE,
        text_style=ft.TextStyle(color=style.TEXT_PRIMARY),
        hint_style=ft.TextStyle(color=style.TEXT_FAINT),
    )
    attach_button = ft.IconButton(icon=ft.icons.ATTACH_FILE, tooltip="Attach image", icon_color=style.TEXT_FAINT)
    stop_button = ft.IconButton(icon=ft.icons.STOP_CIRCLE_OUTLINED, tooltip="Stop", icon_color=style.TEXT_MUTED, visible=False)
    send_icon = ft.Icon(ft.icons.SEND, size=18, color=ft.colors.WHITE)
    send_spinner = ft.ProgressRing(width=16, height=16, stroke_width=2, color=ft.colors.WHITE)
    send_button = ft.Container(
        width=36,
        height=36,
        border_radius=6,
        alignment=ft.alignment.center,
        bgcolor=style.ACCENT,
        content=send_icon,
        tooltip="Send",
    )
    image_preview = ft.Stack(visible=False, width=cfg.IMAGE_PREVIEW_SIZE, height=cfg.IMAGE_PREVIEW_SIZE)
    error_text = ft.Text("", size=12, color=style.DANGER, visible=False)

    def update_send_state():
        session = store.active_session
        streaming = bool(state["streaming"])
        has_input = bool((input_field.value or "").strip() or composer_state["image"] is not None)
        can_send = session is not None and not streaming and has_input

        input_field.disabled = session is None or streaming
        input_field.hint_text = "Create a new chat to begin" if session is None else "Ask Gemini anything, or describe an image..."
        attach_button.disabled = session is None or streaming
        send_button.disabled = not can_send
        send_button.bgcolor = style.ACCENT if can_send else style.SURFACE_ALT
        send_button.content = send_spinner if streaming else send_icon
        stop_button.visible = streaming
        error_text.value = state.get("error") or ""
        error_text.visible = bool(state.get("error"))
        page.update()

    ctx = chat_controller.ChatContext(
        page=page,
        state=state,
        store=store,
        client=client,
        ui_call=ui_flet.ui_call,
        spawn=chat_controller.spawn_thread,
        update_send_state=update_send_state,
        stream_lock=threading.Lock(),
    )

    def set_image(image):
        composer_state["image"] = image
        image_preview.controls.clear()
        if image is not None:
            image_preview.controls.extend(
                [
                    ft.Image(
                        src_base64=image.data,
                        width=cfg.IMAGE_PREVIEW_SIZE,
                        height=cfg.IMAGE_PREVIEW_SIZE,
                        fit=ft.ImageFit.COVER,
                        border_radius=6,
                    ),
                    ft.Container(
                        right=0,
                        top=0,
                        content=ft.IconButton(
                            icon=ft.icons.CLOSE,
                            icon_size=14,
                            bgcolor=style.SURFACE_ALT,
                            on_click=lambda _: set_image(None),
                        ),
                    ),
                ]
            )
        image_preview.visible = image is not None
        update_send_state()

    def send(_=None):
        if chat_controller.send_message(ctx, input_field.value or "", composer_state["image"]):
            input_field.value = ""
            set_image(None)
        else:
            update_send_state()

    input_field.on_change = lambda _: update_send_state()
    input_field.on_submit = send
    send_button.on_click = send
    stop_button.on_click = lambda _: chat_controller.stop_stream(ctx)

    def handle_image_pick(result):
        paths = filepicker_utils.picked_paths(result)
        if not paths:
            return
        try:
            set_image(filepicker_utils.read_image(paths[0]))
        except RuntimeError as exc:
            show_snack(str(exc), style.DANGER)

    image_picker = ft.FilePicker(on_result=handle_image_pick)
    attach_button.on_click = lambda _: image_picker.pick_files(
        allow_multiple=False,
        file_type=ft.FilePickerFileType.CUSTOM,
        allowed_extensions=cfg.IMAGE_EXTENSIONS,
    )

    def handle_source_pick(result):
        session = store.active_session
        if session is None:
            return
        for path in filepicker_utils.picked_paths(result):
            try:
                title, content = docs.source_from_file(path)
            except RuntimeError as exc:
                show_snack(str(exc), style.DANGER)
                continue
            store.add_local_source(session.id, title, content)

    source_picker = ft.FilePicker(on_result=handle_source_pick)

    def pick_source_file(_=None):
        source_picker.pick_files(
            allow_multiple=True,
            file_type=ft.FilePickerFileType.CUSTOM,
            allowed_extensions=cfg.TEXT_SOURCE_EXTENSIONS,
        )

    def handle_export(result):
        session = store.active_session
        path = getattr(result, "path", None)
        if session is None or not path:
            return
        fmt = Path(path).suffix.lstrip(".") or "md"
        ext, out = ui_sessions_io.export_session_text(session, fmt)
        target = Path(path).with_suffix(f".{ext}")
        try:
            target.write_text(out, encoding="utf-8")
        except OSError as exc:
            show_snack(f"Export failed: {exc}", style.DANGER)
            return
        show_snack(f"Chat exported as .{ext}.", style.SUCCESS)

    export_picker = ft.FilePicker(on_result=handle_export)

    def export_chat(_=None):
        session = store.active_session
        if session is None:
            return
        export_picker.save_file(
            file_name=f"{ui_sessions_io.safe_filename(session.title)}.md",
            file_type=ft.FilePickerFileType.CUSTOM,
            allowed_extensions=["md", "txt", "html", "json"],
        )

    page.overlay.extend([image_picker, source_picker, export_picker])

    def new_chat(_=None):
        store.create_session()
        input_field.focus()

    def delete_chat(session_id: str):
        chat_controller.cancel_stream_for_session(ctx, session_id)
        store.delete_session(session_id)

    def switch_chat(session_id: str):
        store.set_active(session_id)
        refresh()

    def change_config(field: str, value):
        session = store.active_session
        if session is None:
            return
        try:
            config = session.config.with_value(field, value)
        except ValidationError as exc:
            logger.warning("Rejected config value %s=%r: %s", field, value, exc)
            show_snack(f"Invalid value for {field}.", style.WARNING)
            return
        if config != session.config:
            store.update_config(session.id, config)

    def add_source(title: str, content: str) -> bool:
        session = store.active_session
        if session is None:
            return False
        return store.add_local_source(session.id, title, content) is not None

    def remove_source(source_id: str):
        session = store.active_session
        if session is not None:
            store.remove_local_source(session.id, source_id)

    def render_sessions_list():
        sessions_list.controls = [
            view_sessions.build_session_tile(
                s,
                is_active=s.id == store.active_session_id,
                on_select=switch_chat,
                on_rename=store.rename_session,
                on_toggle_rename=store.set_renaming,
                on_delete=delete_chat,
            )
            for s in store.sessions
        ]

    def render_settings(session):
        if session is None:
            settings_holder.controls = []
            rendered["config_for"] = None
            rendered["sources_for"] = None
            return
        if rendered["config_for"] == session.id and rendered["sources_for"] is session.local_sources:
            return
        settings_holder.controls = [
            view_settings.build_sources_panel(
                session.local_sources,
                on_add=add_source,
                on_remove=remove_source,
                on_pick_file=pick_source_file,
            ),
            view_settings.build_config_panel(session.config, on_change=change_config),
        ]
        rendered["config_for"] = session.id
        rendered["sources_for"] = session.local_sources

    def render_chat(session):
        messages = session.messages if session is not None else []
        welcome.visible = not messages
        chat_list.visible = bool(messages)
        if rendered["session_id"] != (session.id if session else None):
            rendered["session_id"] = session.id if session else None
            rendered["items"] = {}

        items = rendered["items"]
        controls = []
        for msg in messages:
            cached = items.get(msg.id)
            if cached is None or cached[0] is not msg:
                item = view_chat.build_message_item(msg, open_link_handler=open_markdown_link, open_url=open_url)
                cached = (msg, ft.Row([ft.Container(width=cfg.CHAT_MAX_WIDTH, content=item)], alignment=ft.MainAxisAlignment.CENTER))
                items[msg.id] = cached
            controls.append(cached[1])
        live_ids = {m.id for m in messages}
        for stale in [k for k in items if k not in live_ids]:
            del items[stale]
        chat_list.controls = controls

    def refresh(_=None):
        session = store.active_session
        render_sessions_list()
        render_settings(session)
        render_chat(session)
        update_send_state()

    new_chat_button = ft.IconButton(icon=ft.icons.ADD, tooltip="New Chat", icon_color=style.TEXT_FAINT, on_click=new_chat)
    export_button = ft.IconButton(icon=ft.icons.DOWNLOAD_OUTLINED, tooltip="Export chat", icon_color=style.TEXT_FAINT, on_click=export_chat)

    chat_tab = view_chat.build_chat_tab(
        chat_list=chat_list,
        welcome=welcome,
        composer=view_chat.build_composer(
            input_field=input_field,
            attach_button=attach_button,
            send_button=send_button,
            stop_button=stop_button,
            image_preview=image_preview,
            error_text=error_text,
        ),
    )
    shell = ui_shell.build_shell(
        page=page,
        sidebar_width=cfg.SIDEBAR_WIDTH,
        sessions_panel=view_sessions.build_sessions_panel(
            sessions_list=sessions_list,
            new_chat_button=new_chat_button,
            export_button=export_button,
        ),
        settings_holder=settings_holder,
        chat_tab=chat_tab,
    )

    def on_disconnect(_=None):
        writer.flush()

    page.on_resize = shell["on_resize"]
    page.on_disconnect = on_disconnect
    page.on_close = on_disconnect
    page.add(shell["root_control"])
    shell["apply_responsive_layout"]()

    store.load(ui_sessions_io.load_sessions(blob_store))
    refresh()

    ui_geolocation.start_location_lookup(
        page=page,
        ui_call=ui_flet.ui_call,
        state=state,
        url=cfg.GEOLOCATION_URL,
        timeout_s=cfg.GEOLOCATION_TIMEOUT_S,
        fixed=cfg.FIXED_LOCATION,
    )


def run() -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("flet").setLevel(logging.WARNING)
    logging.getLogger("flet_core").setLevel(logging.WARNING)
    ft.app(target=main)


if __name__ == "__main__":
    run()
