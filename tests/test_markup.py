from core.services.markup import (
    SLACK_BOLD,
    SLACK_ITALIC,
    SLACK_STRIKE,
    SlackMarkupRule,
    TagReplacement,
    decode_entities,
    get_attribute_value,
    replace_single_tags,
    to_plain_text,
    to_slack_markup,
    translate,
)


def bold(text: str) -> str:
    return SLACK_BOLD.start + text + SLACK_BOLD.end


def italic(text: str) -> str:
    return SLACK_ITALIC.start + text + SLACK_ITALIC.end


def test_bold_and_italic_in_source_order():
    result = translate("<b>hi</b> <i>there</i>", SlackMarkupRule())
    assert result == bold("hi") + " " + italic("there")
    assert "<" not in result and ">" not in result


def test_nested_tags_are_all_resolved():
    assert translate("<b><i>x</i></b>", SlackMarkupRule()) == bold(italic("x"))


def test_strike_and_span_styles():
    rule = SlackMarkupRule()
    assert translate("<s>old</s>", rule) == SLACK_STRIKE.start + "old" + SLACK_STRIKE.end
    assert translate('<span style="font-weight:bold;">x</span>', rule) == bold("x")
    assert translate('<span style="font-style:italic;">x</span>', rule) == italic("x")
    assert translate('<span style="color:red;">x</span>', rule) == "x"


def test_link_uses_slack_syntax():
    assert to_slack_markup('see <a href="http://x.test/a">docs</a>') == "see <http://x.test/a|docs>"


def test_link_without_href_is_stripped():
    assert to_slack_markup("<a>docs</a>") == "docs"


def test_paragraph_indent_from_margin():
    assert to_slack_markup('<p style="margin-left:80px;">x</p>') == "\n\t\tx"
    assert to_slack_markup('<p style="margin-left:50px;">x</p>') == "\n\t\tx"
    assert to_slack_markup("<p>x</p>") == "\nx"


def test_indent_unit_is_configurable():
    assert to_slack_markup('<p style="margin-left:80px;">x</p>', indent_unit_px=20) == "\n\t\t\t\tx"


def test_list_items_become_bullets():
    assert to_slack_markup("<ul><li>a</li><li>b</li></ul>") == "\n\t• a\n\t• b"


def test_single_tags():
    assert to_slack_markup("a<br>b") == "a\nb"
    assert to_slack_markup("a<br/>b") == "a\nb"
    assert to_slack_markup("a<br />b<br>c") == "a\nb\nc"
    assert translate("a<img src=\"x\">b") == "ab"


def test_single_tag_pass_keeps_other_lines():
    rule = SlackMarkupRule()
    assert replace_single_tags("line one<br>\nline two", rule) == "line one\n\nline two"


def test_wrap_noise_is_stripped():
    assert translate("a \nb\nc") == "abc"


def test_tag_free_text_is_unchanged():
    assert translate("plain text, nothing else") == "plain text, nothing else"


def test_unknown_tags_are_stripped():
    assert translate("<u>under</u><blink>x</blink>") == "underx"


def test_rule_without_replacement_strips_tag():
    def only_bold(tag, attributes, paired):
        return TagReplacement(start="[", end="]") if tag == "b" else None

    assert translate("<p><b>x</b> y</p>", only_bold) == "[x] y"


def test_entities():
    assert decode_entities("&lt;x&gt; &unknown; &amp; &quot;q&quot;") == '<x> &unknown; & "q"'
    assert decode_entities("&nbsp;") == "\xa0"


def test_slack_entities_keep_literal_angle_brackets_escaped():
    assert to_slack_markup("a &lt; b") == "a &lt; b"
    assert decode_entities("&slack_lt;u|t&slack_gt;", {"slack_lt": "<", "slack_gt": ">"}) == "<u|t>"


def test_get_attribute_value():
    assert get_attribute_value("href", '<a href="http://x" class="y">') == "http://x"
    assert get_attribute_value("class", '<a href="http://x" class="y">') == "y"
    assert get_attribute_value("title", '<a href="http://x">') is None


def test_plain_text_of_memo():
    assert to_plain_text("<p>Hello&nbsp;<b>world</b></p>") == "Hello\xa0world"
