from __future__ import annotations

import unittest

from qwikc.errors import FragmentParseError
from qwikc.ir import StateEntry, StateKind
from qwikc.state import literal_map_text, literal_text, materialize_state, parse_callable
from qwikc.type_erasure import erase_types


SCOPE = ['props', 'state']


class StateMaterializerTests(unittest.TestCase):
    def test_values_go_to_literal_map_only(self) -> None:
        plan = materialize_state(
            {'data': StateEntry(StateKind.VALUE, '{"count": 0}')},
            {},
            SCOPE,
        )
        self.assertEqual(plan.literal_map, {'data': '{"count":0}'})
        self.assertEqual(plan.functions, [])
        self.assertEqual(plan.initializers, [])
        self.assertEqual(literal_map_text(plan), '{"data":{"count":0}}')

    def test_non_json_values_are_kept_verbatim(self) -> None:
        self.assertEqual(literal_text(' new Date() '), 'new Date()')
        self.assertEqual(literal_text('"café"'), '"café"')

    def test_json_values_keep_their_spelling(self) -> None:
        self.assertEqual(literal_text('-0'), '-0')
        self.assertEqual(literal_text('{"a": 1E3}'), '{"a":1E3}')
        self.assertEqual(literal_text('{"s": "a  b", "u": "\\u00e9"}'), '{"s":"a  b","u":"\\u00e9"}')


    def test_getter_is_hoisted_with_one_initializer(self) -> None:
        state = {
            'count': StateEntry(StateKind.VALUE, '0'),
            'double': StateEntry(StateKind.GETTER, 'get double() { return state.count * 2 }'),
        }
        plan = materialize_state(state, {'double': 'getter'}, SCOPE, erase_types=erase_types)

        self.assertEqual(plan.literal_map, {'count': '0'})
        self.assertEqual(len(plan.functions), 1)
        self.assertEqual(plan.functions[0].name, 'double')
        self.assertEqual(plan.functions[0].code, 'function double(props,state) { return state.count * 2 }')
        self.assertEqual(plan.initializers, ['state.double = double(props,state);'])

    def test_methods_keep_their_parameters_and_get_no_initializer(self) -> None:
        state = {
            'add': StateEntry(StateKind.METHOD, 'add(n) { state.count += n }'),
            'reset': StateEntry(StateKind.METHOD, 'reset() { state.add(-state.count) }'),
        }
        plan = materialize_state(state, {'add': 'method', 'reset': 'method'}, SCOPE)
        self.assertEqual(
            [fn.code for fn in plan.functions],
            [
                'function add(props,state,n) { state.count += n }',
                'function reset(props,state) { add(props,state,-state.count) }',
            ],
        )
        self.assertEqual(plan.initializers, [])

    def test_declaration_order_follows_state_order(self) -> None:
        state = {
            'b': StateEntry(StateKind.FUNCTION, 'function b() {}'),
            'a': StateEntry(StateKind.FUNCTION, 'function a() {}'),
        }
        plan = materialize_state(state, {}, SCOPE)
        self.assertEqual([fn.name for fn in plan.functions], ['b', 'a'])

    def test_async_functions_and_arrows(self) -> None:
        state = {
            'load': StateEntry(StateKind.FUNCTION, 'async function load(url) { return fetch(url) }'),
            'inc': StateEntry(StateKind.FUNCTION, '(a) => a + 1'),
        }
        plan = materialize_state(state, {}, ['props', 'state', 'inputRef'])
        self.assertEqual(
            [fn.code for fn in plan.functions],
            [
                'async function load(props,state,inputRef,url) { return fetch(url) }',
                'function inc(props,state,inputRef,a) { return a + 1; }',
            ],
        )

    def test_return_annotation_is_kept_or_erased(self) -> None:
        state = {'total': StateEntry(StateKind.GETTER, 'get total(): number { return 1 }')}
        typed = materialize_state(state, {'total': 'getter'}, SCOPE)
        self.assertEqual(typed.functions[0].code, 'function total(props,state): number { return 1 }')

        erased = materialize_state(state, {'total': 'getter'}, SCOPE, erase_types=erase_types)
        self.assertEqual(erased.functions[0].code, 'function total(props,state) { return 1 }')

    def test_header_parts(self) -> None:
        header = parse_callable('async function* walk(a, b) { yield a }')
        self.assertTrue(header.is_async)
        self.assertTrue(header.is_generator)
        self.assertEqual(header.params, 'a, b')
        self.assertEqual(header.body, '{ yield a }')

    def test_unparseable_header_raises(self) -> None:
        with self.assertRaises(FragmentParseError) as ctx:
            parse_callable('42')
        self.assertEqual(ctx.exception.code, 'FRG010')


if __name__ == '__main__':
    unittest.main()
