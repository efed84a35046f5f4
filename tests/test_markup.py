from __future__ import annotations

import unittest

from qwikc.ir import Binding, ComponentIR, MarkupNode
from qwikc.markup import render_markup
from qwikc.prevent_default import add_prevent_default
from qwikc.source_file import OutputOptions, SourceFile
from qwikc.styles import collect_css, parse_style_object


def text(value: str) -> MarkupNode:
    return MarkupNode('div', properties={'_text': value})


def expr(code: str) -> MarkupNode:
    return MarkupNode('div', bindings={'_text': Binding(code)})


class MarkupTests(unittest.TestCase):
    def setUp(self) -> None:
        self.file = SourceFile('Counter.jsx', OutputOptions(), '@builder.io/qwik')
        self.directives: dict[str, str] = {}
        self.handlers: dict[str, str] = {}
        self.styles: dict[str, str] = {}

    def render(self, children: list[MarkupNode]) -> str:
        return render_markup(self.file, children, self.directives, self.handlers, self.styles, {})

    def test_empty_tree_renders_null(self) -> None:
        self.assertEqual(self.render([]), 'null')
        self.assertEqual(self.render([text('  ')]), 'null')

    def test_elements_text_and_expressions(self) -> None:
        node = MarkupNode('div', properties={'class': 'box'}, children=[text('Count: '), expr('state.count')])
        self.assertEqual(self.render([node]), '<div class="box">Count: {state.count}</div>')
        self.assertEqual(self.render([MarkupNode('input', bindings={'value': Binding('x')})]), '<input value={x} />')

    def test_special_text_is_quoted(self) -> None:
        self.assertEqual(self.render([MarkupNode('p', children=[text('a {b}')])]), '<p>{"a {b}"}</p>')

    def test_events_become_handlers(self) -> None:
        node = MarkupNode('button', bindings={'onClick': Binding('state.count++')})
        self.assertEqual(self.render([node]), '<button onClick$={(event) => { state.count++ }} />')
        self.assertEqual(self.handlers, {'0:onClick': 'state.count++'})

    def test_control_nodes(self) -> None:
        show = MarkupNode('Show', bindings={'when': Binding('open')}, children=[MarkupNode('span')])
        self.assertEqual(self.render([show]), '{(open) ? (<><span /></>) : null}')

        loop = MarkupNode(
            'For',
            properties={'_forName': 'item'},
            bindings={'each': Binding('items')},
            children=[MarkupNode('li', children=[expr('item.name')])],
        )
        self.assertEqual(self.render([loop]), '{(items).map((item, index) => (<><li>{item.name}</li></>))}')

    def test_multiple_roots_are_wrapped(self) -> None:
        self.assertEqual(self.render([MarkupNode('a'), MarkupNode('b')]), '<><a /><b /></>')

    def test_directives_render_as_bare_attributes(self) -> None:
        node = MarkupNode(
            'form',
            properties={'preventdefault:submit': ''},
            bindings={'onSubmit': Binding('event.preventDefault()')},
        )
        self.assertEqual(
            self.render([node]),
            '<form preventdefault:submit onSubmit$={(event) => { event.preventDefault() }} />',
        )
        self.assertEqual(self.directives, {'0:preventdefault:submit': 'preventdefault:submit'})


class PreventDefaultTests(unittest.TestCase):
    def test_marks_only_handlers_that_prevent_default(self) -> None:
        submit = MarkupNode('form', bindings={'onSubmit': Binding('event.preventDefault(); save()')})
        click = MarkupNode('button', bindings={'onClick': Binding('save()')})
        component = ComponentIR(name='Form', children=[MarkupNode('div', children=[submit, click])])

        self.assertEqual(add_prevent_default(component), 1)
        self.assertEqual(submit.properties, {'preventdefault:submit': ''})
        self.assertEqual(click.properties, {})
        self.assertEqual(add_prevent_default(component), 0)


class StyleCollectorTests(unittest.TestCase):
    def test_collects_static_css_into_scoped_classes(self) -> None:
        styled = MarkupNode(
            'div',
            properties={'class': 'card'},
            bindings={'css': Binding("{backgroundColor: 'red', '@media (max-width: 500px)': {color: 'blue'}}")},
        )
        component = ComponentIR(name='Card', children=[styled])

        css = collect_css(component, 'Card')
        self.assertEqual(
            css,
            '.Card-1 {\n  background-color: red;\n}\n'
            '@media (max-width: 500px) {\n  .Card-1 {\n    color: blue;\n  }\n}',
        )
        self.assertEqual(styled.properties['class'], 'card Card-1')
        self.assertNotIn('css', styled.bindings)

    def test_dynamic_css_is_left_in_place(self) -> None:
        dynamic = MarkupNode('div', bindings={'css': Binding('{color: state.color}')})
        component = ComponentIR(name='Card', children=[dynamic])
        self.assertIsNone(collect_css(component, 'Card'))
        self.assertIn('css', dynamic.bindings)

    def test_parses_json_and_object_literals(self) -> None:
        self.assertEqual(parse_style_object('{"color": "red"}'), {'color': 'red'})
        self.assertEqual(parse_style_object("{fontSize: 12, ':hover': {color: `x`}}"), {'fontSize': '12', ':hover': {'color': 'x'}})


if __name__ == '__main__':
    unittest.main()
