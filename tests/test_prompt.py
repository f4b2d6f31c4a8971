from schemas import ChatConfig, ChatSession, ImageAttachment, LatLng, LocalSource, Message
from ui_prompt import SOURCE_INSTRUCTION, SOURCE_SEPARATOR, build_history, build_request, build_source_context


PNG_DATA = "iVBORw0KGgo="


def _session(**kwargs):
    return ChatSession(id="s1", **kwargs)


def _last_turn(request):
    turn = request.contents[-1]
    assert turn.role == "user"
    return turn


def test_plain_message_has_no_preamble():
    request = build_request(_session(), "hello")

    turn = _last_turn(request)
    assert len(request.contents) == 1
    assert [p.text for p in turn.parts] == ["hello"]


def test_local_sources_are_prepended_to_the_new_turn():
    sources = [
        LocalSource(id="1", title="Doc A", content="alpha"),
        LocalSource(id="2", title="Doc B", content="beta"),
    ]

    request = build_request(_session(local_sources=sources), "What does A say?")

    text = _last_turn(request).parts[-1].text
    assert text.startswith(SOURCE_INSTRUCTION)
    assert "SOURCES:\nTitle: Doc A\nContent:\nalpha" + SOURCE_SEPARATOR + "Title: Doc B\nContent:\nbeta" in text
    assert text.endswith(SOURCE_SEPARATOR + "What does A say?")


def test_source_context_is_empty_without_sources():
    assert build_source_context([]) == ""


def test_image_part_comes_before_text():
    image = ImageAttachment(mime_type="image/png", data=PNG_DATA)

    request = build_request(_session(), "what is this?", image)

    parts = _last_turn(request).parts
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[0].inline_data.data == PNG_DATA
    assert parts[1].text == "what is this?"


def test_history_keeps_order_and_skips_empty_turns():
    messages = [
        Message(id="1", role="user", text="hi", image=f"data:image/png;base64,{PNG_DATA}"),
        Message(id="2", role="model", text="hello!"),
        Message(id="3", role="user", text="again"),
        Message(id="4", role="model", text=""),
    ]

    history = build_history(messages)

    assert [c.role for c in history] == ["user", "model", "user"]
    assert history[0].parts[0].text == "hi"
    assert history[0].parts[1].inline_data.data == PNG_DATA
    assert history[1].parts[0].text == "hello!"


def test_request_includes_prior_turns_then_new_turn():
    session = _session(messages=[Message(id="1", role="user", text="a"), Message(id="2", role="model", text="b")])

    request = build_request(session, "c")

    assert [c.role for c in request.contents] == ["user", "model", "user"]
    assert request.contents[-1].parts[0].text == "c"
    assert len(session.messages) == 2


def test_config_maps_to_generation_settings():
    config = ChatConfig(system_instruction="Be brief.", temperature=0.3, top_k=12, top_p=0.5)

    request = build_request(_session(config=config), "x")

    assert request.system_instruction == "Be brief."
    assert (request.temperature, request.top_k, request.top_p) == (0.3, 12, 0.5)
    assert request.thinking_budget is None
    assert request.tools == []


def test_thinking_budget_only_when_positive():
    request = build_request(_session(config=ChatConfig(thinking_budget=2048)), "x")

    assert request.thinking_budget == 2048
    assert request.to_payload()["generationConfig"]["thinkingConfig"] == {"thinkingBudget": 2048}


def test_grounding_tools_follow_config():
    config = ChatConfig(use_grounding=True, use_maps_grounding=True)

    request = build_request(_session(config=config), "x")

    assert request.to_payload()["tools"] == [{"googleSearch": {}}, {"googleMaps": {}}]


def test_location_is_only_sent_with_maps_grounding():
    here = LatLng(latitude=48.85, longitude=2.35)

    without_maps = build_request(_session(config=ChatConfig(use_grounding=True)), "x", location=here)
    with_maps = build_request(_session(config=ChatConfig(use_maps_grounding=True)), "x", location=here)

    assert without_maps.location is None
    assert "toolConfig" not in without_maps.to_payload()
    assert with_maps.to_payload()["toolConfig"] == {
        "retrievalConfig": {"latLng": {"latitude": 48.85, "longitude": 2.35}}
    }


def test_maps_grounding_without_location_sends_no_tool_config():
    request = build_request(_session(config=ChatConfig(use_maps_grounding=True)), "x")

    assert "toolConfig" not in request.to_payload()


def test_payload_wire_shape():
    image = ImageAttachment(mime_type="image/jpeg", data=PNG_DATA)

    payload = build_request(_session(config=ChatConfig(system_instruction="sys")), "q", image).to_payload()

    assert payload["systemInstruction"] == {"parts": [{"text": "sys"}]}
    assert payload["generationConfig"] == {"temperature": 0.7, "topK": 40, "topP": 0.95}
    assert payload["contents"] == [
        {
            "role": "user",
            "parts": [
                {"inlineData": {"mimeType": "image/jpeg", "data": PNG_DATA}},
                {"text": "q"},
            ],
        }
    ]


def test_empty_system_instruction_is_omitted():
    payload = build_request(_session(config=ChatConfig(system_instruction="")), "q").to_payload()

    assert "systemInstruction" not in payload
