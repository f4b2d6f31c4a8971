from schemas import (
    TOOL_MAPS,
    TOOL_WEB_SEARCH,
    ChatSession,
    Content,
    GenerateRequest,
    ImageAttachment,
    LatLng,
    LocalSource,
    Message,
    TextPart,
)


SOURCE_SEPARATOR = "\n\n---\n\n"
SOURCE_INSTRUCTION = (
    "Please use the following sources to answer the user's question. "
    "Respond with \"I don't have enough information in the provided sources\" "
    "if you cannot answer from the context."
)


def build_source_context(local_sources: list[LocalSource]) -> str:
    if not local_sources:
        return ""
    source_text = SOURCE_SEPARATOR.join(f"Title: {s.title}\nContent:\n{s.content}" for s in local_sources)
    return f"{SOURCE_INSTRUCTION}\n\nSOURCES:\n{source_text}{SOURCE_SEPARATOR}"


def message_to_content(msg: Message) -> Content | None:
    parts = []
    if msg.text:
        parts.append(TextPart(text=msg.text))
    if msg.role == "user" and msg.image:
        image = ImageAttachment.from_data_uri(msg.image)
        if image is not None:
            parts.append(image.to_part())
    if not parts:
        return None
    return Content(role=msg.role, parts=parts)


def build_history(messages: list[Message]) -> list[Content]:
    history: list[Content] = []
    for msg in messages:
        content = message_to_content(msg)
        if content is not None:
            history.append(content)
    return history


def build_request(
    session: ChatSession,
    text: str,
    image: ImageAttachment | None = None,
    location: LatLng | None = None,
) -> GenerateRequest:
    """
    Assemble the full request for a new user turn.

    The new turn is not read from ``session.messages``; callers build the
    request before appending it. The session itself is never modified.
    """
    config = session.config

    new_parts = []
    if image is not None:
        new_parts.append(image.to_part())
    new_parts.append(TextPart(text=build_source_context(session.local_sources) + (text or "")))

    tools: list[str] = []
    if config.use_grounding:
        tools.append(TOOL_WEB_SEARCH)
    if config.use_maps_grounding:
        tools.append(TOOL_MAPS)

    return GenerateRequest(
        contents=build_history(session.messages) + [Content(role="user", parts=new_parts)],
        system_instruction=config.system_instruction,
        temperature=config.temperature,
        top_k=config.top_k,
        top_p=config.top_p,
        thinking_budget=config.thinking_budget if config.thinking_budget > 0 else None,
        tools=tools,
        location=location if (config.use_maps_grounding and location is not None) else None,
    )
