"""NiceGUI chat interface with streamed replies, attachments and dictation."""

import logging
import os

from nicegui import events, ui

from geminichat.api.uploads import MAX_UPLOAD_SIZE
from geminichat.models.schemas import Turn
from geminichat.ui.client import ChatClientError, create_http_client
from geminichat.ui.local_storage import BrowserLocalStorage
from geminichat.ui.rendering import attachment_icon, highlight_css, render_markdown, render_plain
from geminichat.ui.session import Attachment, ChatSession, HistoryStore, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Hello! How can I help you today?"
CLEARED_MESSAGE = "Chat cleared. How can I help you?"
DEFAULT_PLACEHOLDER = "Type your message..."
FILE_PLACEHOLDER = "Ask a question about the file..."
LISTENING_PLACEHOLDER = "Listening..."
SPEECH_LANG = "en-US"
ACCEPTED_FILE_TYPES = "image/*,audio/*,application/pdf"
# Enter sends, Shift+Enter inserts a newline
ENTER_KEY_HANDLER = "(e) => { if (!e.shiftKey) { e.preventDefault(); emit(); } }"

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: linear-gradient(135deg, #4285f4 0%, #9b72cb 100%); }

    .message-user {
        background: linear-gradient(135deg, #4285f4 0%, #9b72cb 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .message-error {
        background: #f8d7da;
        color: #721c24;
        border-radius: 18px 18px 18px 4px;
    }

    .avatar-user { background: linear-gradient(135deg, #4285f4 0%, #9b72cb 100%); }
    .avatar-assistant { background: #6b7280; }

    .typing-dot {
        width: 8px; height: 8px;
        background: #4285f4;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: #f9fafb;
        border: 1px solid #e5e7eb;
        border-radius: 12px;
        transition: border-color 0.2s;
    }
    .input-box:focus-within { border-color: #4285f4; }

    .send-btn { background: linear-gradient(135deg, #4285f4 0%, #9b72cb 100%) !important; }
    .listening { background: #ef4444 !important; color: white !important; }

    .message-image { max-width: 200px; border-radius: 8px; display: block; }
    .message-file-attachment {
        display: inline-flex; gap: 6px; align-items: center;
        background: rgba(255, 255, 255, 0.2);
        border-radius: 8px; padding: 4px 8px;
    }

    /* Markdown styling */
    .message-assistant strong { font-weight: 600; }
    .message-assistant em { font-style: italic; }
    .message-assistant pre {
        position: relative;
        margin: 0.5rem 0;
        padding: 0.75rem;
        border-radius: 8px;
        overflow-x: auto;
        font-size: 0.75rem;
    }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }
    .message-assistant ul, .message-assistant ol { margin: 0.5rem 0; padding-left: 1.25rem; }
    .message-assistant ul { list-style: disc; }
    .message-assistant ol { list-style: decimal; }
    .message-assistant a { color: #4f46e5; text-decoration: underline; }
    .message-assistant table { border-collapse: collapse; margin: 0.5rem 0; }
    .message-assistant th, .message-assistant td { border: 1px solid #d1d5db; padding: 2px 6px; }

    .copy-code-btn {
        position: absolute; top: 6px; right: 6px;
        font-size: 0.7rem; padding: 2px 8px;
        border-radius: 6px; background: #e5e7eb; color: #374151;
        opacity: 0.8;
    }
    .copy-code-btn:hover { opacity: 1; }
</style>
"""

PAGE_SCRIPT = """
<script>
window.geminiChat = {
  speechSupported() {
    return 'SpeechRecognition' in window || 'webkitSpeechRecognition' in window;
  },
  startDictation(lang) {
    const Recognition = window.SpeechRecognition || window.webkitSpeechRecognition;
    const recognition = new Recognition();
    recognition.continuous = false;
    recognition.interimResults = false;
    recognition.lang = lang;
    recognition.onstart = () => emitEvent('speech_start');
    recognition.onresult = (event) => emitEvent('speech_result', event.results[0][0].transcript);
    recognition.onerror = (event) => emitEvent('speech_error', event.error);
    recognition.onend = () => emitEvent('speech_end');
    recognition.start();
  },
};

document.addEventListener('click', (event) => {
  const button = event.target.closest('.copy-code-btn');
  if (!button) return;
  const code = button.parentElement.querySelector('code');
  navigator.clipboard.writeText(code ? code.textContent : '').then(() => {
    button.textContent = 'Copied!';
    setTimeout(() => { button.textContent = 'Copy'; }, 2000);
  });
});
</script>
"""


@ui.page("/")
async def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS + f"<style>{highlight_css()}</style>" + PAGE_SCRIPT)

    def on_storage_error(message: str) -> None:
        ui.notify(message, type="warning")

    session = ChatSession(
        HistoryStore(BrowserLocalStorage(ui.context.client)),
        on_storage_error=on_storage_error,
    )

    messages_container: ui.column
    scroll_area: ui.scroll_area
    preview_row: ui.row
    uploader: ui.upload
    input_field: ui.textarea
    send_btn: ui.button
    mic_btn: ui.button
    attach_btn: ui.button

    def render_avatar(is_user: bool) -> None:
        css = "avatar-user" if is_user else "avatar-assistant"
        icon = "person" if is_user else "smart_toy"
        avatar_classes = f"w-9 h-9 rounded-full flex items-center justify-center {css}"
        with ui.element("div").classes(avatar_classes):
            ui.icon(icon).classes("text-white text-lg")

    def render_file(file_name: str, mime_type: str, preview_url: str | None, spaced: bool) -> None:
        margin = "mb-2" if spaced else ""
        if preview_url and mime_type.startswith("image/"):
            ui.image(preview_url).classes(f"message-image {margin}")
            return
        with ui.element("div").classes(f"message-file-attachment {margin}"):
            ui.label(attachment_icon(mime_type))
            ui.label(file_name).classes("text-sm")

    def render_user_message(text: str, attachment: Attachment | None = None) -> None:
        with (
            messages_container,
            ui.row().classes("w-full justify-end gap-3 items-end"),
        ):
            with ui.column().classes("max-w-[70%] gap-1 items-end"):
                with ui.element("div").classes("px-4 py-3 message-user"):
                    if attachment is not None:
                        render_file(
                            attachment.file_name,
                            attachment.mime_type,
                            attachment.preview_url,
                            spaced=bool(text),
                        )
                    if text:
                        ui.label(text).classes("text-sm leading-relaxed whitespace-pre-wrap")
            render_avatar(True)

    def render_bot_bubble() -> ui.element:
        with (
            messages_container,
            ui.row().classes("w-full justify-start gap-3 items-end"),
        ):
            render_avatar(False)
            with ui.column().classes("max-w-[70%] gap-1"):
                bubble = ui.element("div").classes("px-4 py-3 message-assistant")
        return bubble

    def render_bot_message(text: str) -> None:
        with render_bot_bubble():
            ui.html(render_markdown(text), sanitize=False).classes("text-sm leading-relaxed")

    def render_turn(turn: Turn) -> None:
        if turn.role == "model":
            render_bot_message(turn.text)
            return
        # Files survive only in memory; reloaded history holds text placeholders
        attachment = None
        for part in turn.parts:
            if part.inline_data is not None:
                data = part.inline_data
                attachment = Attachment(
                    file_name=data.file_name or "Attached File",
                    mime_type=data.mime_type,
                    content=data.decode(),
                )
        render_user_message(turn.text, attachment)

    def render_typing_indicator() -> ui.row:
        with ui.row().classes("items-center gap-1") as row:
            for _ in range(3):
                ui.element("div").classes("typing-dot")
        return row

    def scroll_to_bottom() -> None:
        scroll_area.scroll_to(percent=1.0)

    def set_placeholder(text: str) -> None:
        input_field.props(f'placeholder="{text}"')

    def idle_placeholder() -> str:
        return FILE_PLACEHOLDER if session.attachment is not None else DEFAULT_PLACEHOLDER

    def set_form_disabled(disabled: bool) -> None:
        for control in (input_field, send_btn, mic_btn, attach_btn):
            if disabled:
                control.disable()
            else:
                control.enable()

    def load_and_render_history() -> None:
        messages_container.clear()
        if session.history:
            for turn in session.history:
                render_turn(turn)
        else:
            render_bot_message(WELCOME_MESSAGE)

    # === Attachments ===

    def reset_attachment_preview() -> None:
        preview_row.clear()
        preview_row.set_visibility(False)
        set_placeholder(DEFAULT_PLACEHOLDER)

    def remove_attachment() -> None:
        session.remove_attachment()
        reset_attachment_preview()

    def show_attachment_preview(attachment: Attachment) -> None:
        preview_row.clear()
        with preview_row:
            if attachment.is_image:
                ui.image(attachment.preview_url).classes("w-16 h-16 rounded-lg")
            else:
                with ui.element("div").classes("message-file-attachment bg-gray-100"):
                    ui.label(attachment_icon(attachment.mime_type))
                    ui.label(attachment.file_name).classes("text-sm truncate max-w-[16rem]").tooltip(
                        attachment.file_name
                    )
            ui.button(icon="close", on_click=remove_attachment).props("flat round dense size=sm")
        preview_row.set_visibility(True)
        set_placeholder(FILE_PLACEHOLDER)

    async def handle_upload(e: events.UploadEventArguments) -> None:
        try:
            content = await e.file.read()
            attachment = session.attach(e.file.name, e.file.content_type, content)
        except UnsupportedFileTypeError as err:
            ui.notify(str(err), type="warning")
        else:
            show_attachment_preview(attachment)
        finally:
            uploader.reset()

    def handle_rejected() -> None:
        ui.notify("Files must be 10MB or smaller.", type="warning")

    # === Sending ===

    async def send_message() -> None:
        text = input_field.value or ""
        if session.is_streaming or not session.can_submit(text):
            return

        render_user_message(text.strip(), session.attachment)
        input_field.value = ""
        reset_attachment_preview()
        set_form_disabled(True)

        bubble = render_bot_bubble()
        with bubble:
            typing_row = render_typing_indicator()
        scroll_to_bottom()

        content: ui.html | None = None

        def ensure_content() -> ui.html:
            nonlocal content
            if content is None:
                typing_row.delete()
                with bubble:
                    content = ui.html("", sanitize=False).classes("text-sm leading-relaxed")
            return content

        def on_chunk(accumulated: str) -> None:
            # Raw text while streaming, markdown once complete
            ensure_content().set_content(render_plain(accumulated))
            scroll_to_bottom()

        try:
            async with create_http_client() as client:
                reply = await session.send(text, client, on_chunk)
            ensure_content().set_content(render_markdown(reply or ""))
        except ChatClientError as e:
            logger.warning(f"Chat exchange failed: {e}")
            bubble.clear()
            bubble.classes(add="message-error", remove="message-assistant")
            with bubble:
                ui.label(f"Error: {e}").classes("text-sm")
        finally:
            set_form_disabled(False)
            input_field.run_method("focus")
            scroll_to_bottom()

    async def clear_chat() -> None:
        await session.clear()
        messages_container.clear()
        render_bot_message(CLEARED_MESSAGE)
        input_field.run_method("focus")

    # === Voice input ===

    def start_dictation() -> None:
        ui.run_javascript(f"window.geminiChat.startDictation({SPEECH_LANG!r})")

    def on_speech_start(_: events.GenericEventArguments) -> None:
        set_form_disabled(True)
        mic_btn.classes(add="listening")
        mic_btn.props("icon=more_horiz")
        set_placeholder(LISTENING_PLACEHOLDER)

    def on_speech_result(e: events.GenericEventArguments) -> None:
        input_field.set_value(str(e.args))

    def on_speech_end(_: events.GenericEventArguments) -> None:
        set_form_disabled(False)
        mic_btn.classes(remove="listening")
        mic_btn.props("icon=mic")
        set_placeholder(idle_placeholder())

    def on_speech_error(e: events.GenericEventArguments) -> None:
        ui.notify(f"Voice recognition error: {e.args}", type="negative")

    ui.on("speech_start", on_speech_start)
    ui.on("speech_result", on_speech_result)
    ui.on("speech_end", on_speech_end)
    ui.on("speech_error", on_speech_error)

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Header
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("auto_awesome").classes("text-white text-3xl")
                ui.label("Gemini Chat").classes("text-lg font-semibold text-white")
            ui.button(icon="delete_sweep", on_click=clear_chat).props(
                "flat round color=white"
            ).tooltip("Clear chat")

        # Messages
        with ui.scroll_area().classes("flex-grow w-full bg-gray-50") as scroll_area:
            messages_container = ui.column().classes("w-full gap-4 p-5")

        # Attachment preview
        preview_row = ui.row().classes("w-full px-4 pt-3 items-center gap-3")
        preview_row.set_visibility(False)

        # Input
        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            uploader = (
                ui.upload(
                    on_upload=handle_upload,
                    on_rejected=handle_rejected,
                    auto_upload=True,
                    max_files=1,
                    max_file_size=MAX_UPLOAD_SIZE,
                )
                .props(f'accept="{ACCEPTED_FILE_TYPES}"')
                .classes("hidden")
            )
            attach_btn = ui.button(
                icon="attach_file", on_click=lambda: uploader.run_method("pickFiles")
            ).props("flat round")
            mic_btn = ui.button(icon="mic", on_click=start_dictation).props("flat round")
            mic_btn.set_visibility(False)
            with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                input_field = (
                    ui.textarea(placeholder=DEFAULT_PLACEHOLDER)
                    .props("autogrow borderless dense rows=1")
                    .classes("w-full")
                    .on("keydown.enter", send_message, js_handler=ENTER_KEY_HANDLER)
                )
            send_btn = (
                ui.button(icon="send", on_click=send_message)
                .props("round unelevated")
                .classes("send-btn")
            )

    # History and dictation support live in the browser, so wait for the socket
    try:
        await ui.context.client.connected()
    except TimeoutError:
        logger.info("Client did not connect in time; history stays unloaded")
        return

    await session.load()
    load_and_render_history()

    try:
        supported = await ui.run_javascript("window.geminiChat.speechSupported()")
    except TimeoutError:
        logger.info("Browser did not report speech support; voice input stays hidden")
        return
    if supported:
        mic_btn.set_visibility(True)
    else:
        logger.info("Speech recognition not supported in this browser")


def main() -> None:
    """Serve the chat page on its own (the relay runs elsewhere)."""
    ui.run(
        title="Gemini Chat",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
