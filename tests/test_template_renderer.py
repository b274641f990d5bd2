import pytest

from viz_gateway.core.errors import UserDataError
from viz_gateway.services.templates import TemplateRenderer


@pytest.fixture
def renderer():
    return TemplateRenderer()


def test_renders_every_template_in_order(renderer):
    result = renderer.render(
        ['{"title": "{{ title }}"}', "{{ x }}-{{ y }}"],
        [{"title": "Sales"}, {"x": 1, "y": "b"}],
    )
    assert result == ['{"title": "Sales"}', "1-b"]


def test_template_without_placeholders_needs_no_parameters(renderer):
    assert renderer.render(['{"panels": []}'], [None]) == ['{"panels": []}']


def test_missing_parameter_names_the_failing_index(renderer):
    with pytest.raises(UserDataError) as exc_info:
        renderer.render(["{{ a }}", "{{ missing }}"], [{"a": 1}, {}])

    assert exc_info.value.index == 1
    assert "TemplateIndex: '1'" in exc_info.value.message
    assert not exc_info.value.not_found


def test_syntax_error_is_user_data_error(renderer):
    with pytest.raises(UserDataError) as exc_info:
        renderer.render(["{{ unclosed "], [{}])
    assert exc_info.value.index == 0


def test_expression_error_is_user_data_error(renderer):
    with pytest.raises(UserDataError) as exc_info:
        renderer.render(["{{ a / b }}"], [{"a": 1, "b": 0}])
    assert exc_info.value.index == 0


def test_sandbox_blocks_unsafe_attribute_access(renderer):
    with pytest.raises(UserDataError):
        renderer.render(["{{ ''.__class__ }}"], [{}])


def test_length_mismatch_is_rejected(renderer):
    with pytest.raises(UserDataError):
        renderer.render(["{{ a }}", "{{ b }}"], [{"a": 1}])


def test_parameters_must_be_a_mapping(renderer):
    with pytest.raises(UserDataError) as exc_info:
        renderer.render(["{{ a }}"], [["a", 1]])
    assert exc_info.value.index == 0


def test_empty_batch_renders_nothing(renderer):
    assert renderer.render([], []) == []


def test_dot_field_references_resolve_to_parameters(renderer):
    result = renderer.render(["{{.x}}", "{{.y}}"], [{"x": "1"}, {"y": "2"}])
    assert result == ["1", "2"]


def test_dot_field_with_spaces_and_nesting(renderer):
    result = renderer.render(
        ['{"title": "{{ .title }}", "uid": "{{.meta.uid}}"}'],
        [{"title": "Sales", "meta": {"uid": "abc"}}],
    )
    assert result == ['{"title": "Sales", "uid": "abc"}']


def test_dot_field_missing_key_is_rejected(renderer):
    with pytest.raises(UserDataError) as exc_info:
        renderer.render(["{{.x}}", "{{.missing}}"], [{"x": "1"}, {"x": "2"}])
    assert exc_info.value.index == 1