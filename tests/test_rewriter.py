from __future__ import annotations

import unittest

from qwikc.errors import FragmentParseError
from qwikc.ir import ComponentIR, HookCode, Hooks, StateEntry, StateKind, UpdateHook
from qwikc.rewriter import CallSiteRewriter, apply_replacements, rewrite_component, rewrite_fragment


METHODS = {'double': 'getter', 'add': 'method'}
SCOPE = ['props', 'state']


def rewrite(code: str) -> str:
    return rewrite_fragment(code, METHODS, SCOPE)


class RewriterTests(unittest.TestCase):
    def test_getter_read_becomes_call(self) -> None:
        self.assertEqual(rewrite('state.double + 1'), 'double(props,state) + 1')

    def test_method_call_gets_scope_prefix(self) -> None:
        self.assertEqual(rewrite('state.add(2)'), 'add(props,state,2)')
        self.assertEqual(rewrite('state.add()'), 'add(props,state)')

    def test_bare_method_reference_is_bound(self) -> None:
        self.assertEqual(rewrite('onClick(state.add)'), 'onClick(add.bind(null,props,state))')

    def test_plain_values_are_untouched(self) -> None:
        self.assertEqual(rewrite('state.count + 1'), 'state.count + 1')

    def test_rewriting_is_idempotent(self) -> None:
        sources = [
            'state.double + state.add(state.double)',
            'x => state.add(x)',
            '`${state.double}` + state.add',
        ]
        for source in sources:
            with self.subTest(source=source):
                once = rewrite(source)
                self.assertEqual(rewrite(once), once)

    def test_strings_and_comments_are_untouched(self) -> None:
        for source in ["'state.double'", '"state.add(1)"', '// state.double\nx', '`state.double`']:
            with self.subTest(source=source):
                self.assertEqual(rewrite(source), source)

    def test_template_substitution_is_rewritten(self) -> None:
        self.assertEqual(rewrite('`${state.double}`'), '`${double(props,state)}`')

    def test_assignments_and_foreign_members_are_untouched(self) -> None:
        self.assertEqual(rewrite('state.double = 3'), 'state.double = 3')
        self.assertEqual(rewrite('other.state.double'), 'other.state.double')

    def test_shadowed_state_bindings_are_skipped(self) -> None:
        sources = [
            'const state = {double: 1}; return state.double',
            'items.map(state => state.double)',
            'items.map((x, state) => state.double)',
            'function f(state) { return state.double }',
        ]
        for source in sources:
            with self.subTest(source=source):
                self.assertEqual(rewrite(source), source)

    def test_shadowing_ends_with_its_block(self) -> None:
        self.assertEqual(
            rewrite('{ const state = 1 } state.double'),
            '{ const state = 1 } double(props,state)',
        )

    def test_parameter_defaults_do_not_shadow(self) -> None:
        self.assertEqual(
            rewrite('const f = (a = state) => state.double'),
            'const f = (a = state) => double(props,state)',
        )
        self.assertEqual(
            rewrite('function f({ a = state }) { return state.double }'),
            'function f({ a = state }) { return double(props,state) }',
        )

    def test_var_is_hoisted_to_function_scope(self) -> None:
        source = 'function f() { if (x) { var state = 1 } return state.double }'
        self.assertEqual(rewrite(source), source)

    def test_regex_and_division_are_told_apart(self) -> None:
        self.assertEqual(rewrite("if (ok) /'/.test(state.double)"), "if (ok) /'/.test(double(props,state))")
        self.assertEqual(rewrite('a / state.double / 2'), 'a / double(props,state) / 2')


    def test_full_scope_is_passed(self) -> None:
        rewriter = CallSiteRewriter(METHODS, ['props', 'state', 'inputRef', 'theme'])
        self.assertEqual(rewriter.rewrite('state.add(1)'), 'add(props,state,inputRef,theme,1)')

    def test_malformed_fragment_raises(self) -> None:
        with self.assertRaises(FragmentParseError) as ctx:
            rewrite('state.double(')
        self.assertEqual(ctx.exception.code, 'FRG001')

    def test_replacements_apply_in_order_after_rewrite(self) -> None:
        self.assertEqual(apply_replacements('a b a', {'a': 'b', 'b': 'c'}), 'c c c')

        component = ComponentIR(
            name='Counter',
            state={'double': StateEntry(StateKind.GETTER, 'get double() { return 2 }')},
            hooks=Hooks(on_mount=HookCode('log(state.double)')),
        )
        changed = rewrite_component(component, {'double': 'getter'}, SCOPE, {'log(': 'console.log('})
        self.assertEqual(component.hooks.on_mount.code, 'console.log(double(props,state))')
        self.assertEqual(changed, 1)

    def test_update_dependencies_are_rewritten(self) -> None:
        component = ComponentIR(
            name='Counter',
            state={'double': StateEntry(StateKind.GETTER, 'get double() { return 2 }')},
            hooks=Hooks(on_update=[UpdateHook('run()', deps='[state.double.x, state.count]')]),
        )
        rewrite_component(component, {'double': 'getter'}, SCOPE)
        self.assertEqual(component.hooks.on_update[0].deps, '[double(props,state).x, state.count]')
        self.assertEqual(component.hooks.on_update[0].code, 'run()')


    def test_component_name_is_attached_to_parse_errors(self) -> None:
        component = ComponentIR(name='Broken', hooks=Hooks(on_mount=HookCode('foo(')))
        with self.assertRaises(FragmentParseError) as ctx:
            rewrite_component(component, {}, SCOPE)
        self.assertEqual(ctx.exception.component, 'Broken')
        self.assertEqual(ctx.exception.fragment, 'foo(')


if __name__ == '__main__':
    unittest.main()
