from __future__ import annotations

import unittest

from qwikc.config import GeneratorOptions
from qwikc.errors import PluginError
from qwikc.ir import ComponentIR, component_from_dict
from qwikc.main import generate_component
from qwikc.plugin import FunctionPlugin, PluginManager, build_plugin_manager, load_plugin_spec
from qwikc.plugins.std_transforms import StripConsolePlugin, strip_console_calls


def form_component() -> ComponentIR:
    return component_from_dict(
        {
            'name': 'Signup',
            'children': [{'name': 'form', 'bindings': {'onSubmit': {'code': 'event.preventDefault()'}}}],
        }
    )


class PluginManagerTests(unittest.TestCase):
    def test_hooks_run_around_prevent_default(self) -> None:
        seen: dict[str, bool] = {}

        def has_directive(component: ComponentIR) -> bool:
            return 'preventdefault:submit' in component.children[0].properties

        def pre(component: ComponentIR) -> ComponentIR:
            seen['pre'] = has_directive(component)
            return component

        def post(component: ComponentIR) -> ComponentIR:
            seen['post'] = has_directive(component)
            return component

        plugin = FunctionPlugin('observer', pre=pre, post=post)
        result = generate_component(form_component(), options=GeneratorOptions(plugins=[plugin]))
        self.assertTrue(result.ok, result.text)
        self.assertEqual(seen, {'pre': False, 'post': True})

    def test_plugins_run_in_registration_order(self) -> None:
        order: list[str] = []

        def recorder(label: str) -> FunctionPlugin:
            def pre(component: ComponentIR) -> ComponentIR:
                order.append(label)
                return component

            return FunctionPlugin(label, pre=pre)

        manager = build_plugin_manager([recorder('first'), recorder('second')])
        manager.run_pre(form_component())
        self.assertEqual(order, ['first', 'second'])
        self.assertEqual(manager.names(), ['first', 'second'])

    def test_hook_must_return_component(self) -> None:
        plugin = FunctionPlugin('broken', post=lambda component: None)
        result = generate_component(form_component(), options=GeneratorOptions(plugins=[plugin]))
        self.assertFalse(result.ok)
        self.assertEqual(result.error.code, 'PLG009')
        self.assertEqual(result.error.component, 'Signup')

    def test_module_spec_uses_register(self) -> None:
        manager = PluginManager()
        load_plugin_spec(manager, 'qwikc.plugins.std_transforms')
        self.assertEqual(manager.names(), ['strip_console'])

    def test_class_spec_is_instantiated(self) -> None:
        manager = PluginManager()
        load_plugin_spec(manager, 'qwikc.plugins.std_transforms:LightComponentPlugin')
        self.assertEqual(manager.names(), ['light_component'])

    def test_missing_symbol(self) -> None:
        with self.assertRaises(PluginError) as ctx:
            load_plugin_spec(PluginManager(), 'qwikc.plugins.std_transforms:nope')
        self.assertEqual(ctx.exception.code, 'PLG003')

    def test_empty_spec(self) -> None:
        with self.assertRaises(PluginError) as ctx:
            load_plugin_spec(PluginManager(), '  ')
        self.assertEqual(ctx.exception.code, 'PLG004')

    def test_bad_spec_is_reported_per_component(self) -> None:
        result = generate_component({'name': 'Counter'}, options=GeneratorOptions(plugins=['qwikc.plugins.std_transforms:nope']))
        self.assertFalse(result.ok)
        self.assertEqual(result.error.code, 'PLG003')


class StdTransformTests(unittest.TestCase):
    def test_strip_console_statements(self) -> None:
        self.assertEqual(strip_console_calls('console.log(1);\nrun()'), 'run()')
        self.assertEqual(strip_console_calls('if (x) { console.warn(x) }'), 'if (x) {  }')

    def test_strip_console_keeps_expressions(self) -> None:
        code = 'x = console.log(1) || y'
        self.assertEqual(strip_console_calls(code), code)

    def test_strip_console_ignores_strings_and_regex(self) -> None:
        code = "log('console.log(1);')\nif (ok) /'/.test(s)"
        self.assertEqual(strip_console_calls(code), code)
        self.assertEqual(strip_console_calls("if (ok) /'/.test(s)\nconsole.log(s)"), "if (ok) /'/.test(s)")


    def test_strip_console_plugin_touches_hooks(self) -> None:
        component = component_from_dict(
            {
                'name': 'Counter',
                'hooks': {
                    'onMount': {'code': 'console.log("mounted");\nstart()'},
                    'onUnMount': {'code': 'console.info(1)'},
                },
            }
        )
        StripConsolePlugin().pre_json(component)
        self.assertEqual(component.hooks.on_mount.code, 'start()')
        self.assertEqual(component.hooks.on_unmount.code, '')

    def test_light_component_plugin(self) -> None:
        options = GeneratorOptions(plugins=['qwikc.plugins.std_transforms:LightComponentPlugin'])
        result = generate_component({'name': 'Counter'}, options=options)
        self.assertTrue(result.ok, result.text)
        self.assertIn('export const Counter = (props) => {', result.code)
        self.assertNotIn('component$', result.code)


if __name__ == '__main__':
    unittest.main()
