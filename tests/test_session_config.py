"""
Tests for the per-session configuration store.
"""
import unittest

from config import RecognizerSettings
from core.errors import InvalidAttribute
from core.session_config import SessionConfig


def _config():
    return SessionConfig.from_settings(RecognizerSettings())


class TestSessionConfig(unittest.TestCase):
    def test_defaults_from_settings(self):
        snap = _config().snapshot()
        self.assertEqual(snap.lang, "pt-BR")
        self.assertEqual(snap.asr_engine, "me")
        self.assertEqual(snap.model_name, "")
        self.assertEqual((snap.init_silence_ms, snap.max_silence_ms, snap.abs_timeout_s), (5000, 1000, 15))
        self.assertEqual(snap.verbose, 0)

    def test_short_and_long_names(self):
        cfg = _config()
        cfg.apply("lang", "en-US")
        cfg.apply("asr_engine", "google")
        cfg.apply("initsil", "-1")
        cfg.apply("maxsil", 800)
        cfg.apply("abs_timeout", "0")
        cfg.apply("verbose", "1")
        snap = cfg.snapshot()
        self.assertEqual(snap.lang, "en-US")
        self.assertEqual(snap.asr_engine, "google")
        self.assertEqual(snap.init_silence_ms, -1)
        self.assertEqual(snap.max_silence_ms, 800)
        self.assertEqual(snap.abs_timeout_s, 0)
        self.assertEqual(cfg.verbose, 1)
        cfg.apply("language", "es-ES")
        cfg.apply("trailing_silence_ms", "1500")
        self.assertEqual(cfg.lang, "es-ES")
        self.assertEqual(cfg.snapshot().max_silence_ms, 1500)

    def test_unknown_attribute_leaves_store_unchanged(self):
        cfg = _config()
        before = cfg.snapshot()
        with self.assertRaises(InvalidAttribute) as ctx:
            cfg.apply("volume", "11")
        self.assertEqual(ctx.exception.name, "volume")
        self.assertEqual(cfg.snapshot(), before)

    def test_bad_integer_leaves_store_unchanged(self):
        cfg = _config()
        before = cfg.snapshot()
        with self.assertRaises(InvalidAttribute):
            cfg.apply("maxsil", "soon")
        self.assertEqual(cfg.snapshot(), before)

    def test_snapshot_is_not_affected_by_later_changes(self):
        cfg = _config()
        snap = cfg.snapshot()
        cfg.apply("maxsil", "200")
        self.assertEqual(snap.max_silence_ms, 1000)

    def test_set_model_empty(self):
        cfg = _config()
        cfg.set_model("menu_principal")
        self.assertEqual(cfg.model_name, "menu_principal")
        cfg.set_model(None)
        self.assertEqual(cfg.model_name, "")


if __name__ == "__main__":
    unittest.main()
