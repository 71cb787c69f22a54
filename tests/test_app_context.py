import threading

from inkdeck.app_context import load_context
from inkdeck.config import ConfigPaths, bootstrap


def test_invalidators_from_one_context_share_plugin_locks(tmp_path):
    paths = ConfigPaths.from_base_dir(tmp_path / "inkdeck")
    bootstrap(paths)
    context = load_context(paths)
    first = context.invalidator()
    second = context.invalidator()
    entered = threading.Event()

    def hold_second():
        with second.plugin_lock("plugin-1"):
            entered.set()

    with first.plugin_lock("plugin-1"):
        worker = threading.Thread(target=hold_second)
        worker.start()
        assert not entered.wait(timeout=0.2)

    worker.join(timeout=2)
    assert entered.is_set()


def test_invalidators_from_separate_loads_share_plugin_locks(tmp_path):
    paths = ConfigPaths.from_base_dir(tmp_path / "inkdeck")
    bootstrap(paths)
    sweep = load_context(paths).invalidator()
    command = load_context(paths).invalidator()
    entered = threading.Event()

    def hold_command():
        with command.plugin_lock("plugin-1"):
            entered.set()

    with sweep.plugin_lock("plugin-1"):
        worker = threading.Thread(target=hold_command)
        worker.start()
        assert not entered.wait(timeout=0.2)

    worker.join(timeout=2)
    assert entered.is_set()
