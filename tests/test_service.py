from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from qwikc import __version__
from qwikc.errors import CLIError
from qwikc.service import dispatch, safe_dispatch


COUNTER = {'name': 'Counter', 'state': {'count': {'kind': 'value', 'code': '0'}}}


class ServiceTests(unittest.TestCase):
    def test_capabilities(self) -> None:
        payload = dispatch('capabilities')
        self.assertEqual(payload['service'], 'qwikc')
        self.assertEqual(payload['version'], __version__)
        self.assertEqual(payload['methods'], ['batch', 'capabilities', 'generate'])
        self.assertEqual(payload['runtime'], '@builder.io/qwik')

    def test_generate_inline(self) -> None:
        payload = dispatch('generate', {'component': COUNTER})
        self.assertTrue(payload['ok'])
        self.assertIsNone(payload['error'])
        self.assertIn('useStore({"count":0})', payload['code'])

    def test_generate_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'Counter.json'
            path.write_text(json.dumps(COUNTER), encoding='utf-8')
            payload = dispatch('generate', {'input_path': str(path), 'typescript': True})
        self.assertTrue(payload['ok'])
        self.assertIn('(props: any) =>', payload['code'])

    def test_generation_failure_is_a_result(self) -> None:
        payload = dispatch('generate', {'component': {'name': 'Counter', 'hooks': {'onMount': {'code': 'x('}}}})
        self.assertFalse(payload['ok'])
        self.assertEqual(payload['error']['code'], 'FRG001')
        self.assertIn('Traceback', payload['trace'])

    def test_unknown_method(self) -> None:
        ok, payload = safe_dispatch('compile', {})
        self.assertFalse(ok)
        self.assertEqual(payload['error']['code'], 'SRV001')

    def test_component_and_path_are_exclusive(self) -> None:
        with self.assertRaises(CLIError) as ctx:
            dispatch('generate', {'component': COUNTER, 'input_path': 'Counter.json'})
        self.assertEqual(ctx.exception.code, 'SRV002')

    def test_missing_path(self) -> None:
        ok, payload = safe_dispatch('generate', {'input_path': '/does/not/exist.json'})
        self.assertFalse(ok)
        self.assertEqual(payload['error']['code'], 'SRV003')

    def test_missing_component(self) -> None:
        ok, payload = safe_dispatch('generate', {})
        self.assertFalse(ok)
        self.assertEqual(payload['error']['code'], 'SRV004')

    def test_plugins_must_be_strings(self) -> None:
        ok, payload = safe_dispatch('generate', {'component': COUNTER, 'plugins': 3})
        self.assertFalse(ok)
        self.assertEqual(payload['error']['code'], 'SRV006')

    def test_batch_reports_failures(self) -> None:
        payload = dispatch('batch', {'components': [COUNTER, {'name': 'Broken', 'refs': 5}]})
        self.assertEqual(payload['failed'], 1)
        self.assertEqual([item['ok'] for item in payload['results']], [True, False])
        self.assertEqual(payload['results'][1]['error']['code'], 'IR005')

    def test_batch_requires_list(self) -> None:
        ok, payload = safe_dispatch('batch', {'components': {}})
        self.assertFalse(ok)
        self.assertEqual(payload['error']['code'], 'SRV005')


if __name__ == '__main__':
    unittest.main()
