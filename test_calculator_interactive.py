# test_calculator_interactive.py - Interaction loop driven by scripted prompts
import io

import pytest
from rich.console import Console

import calculator_interactive
from calculator_interactive import InteractionLoop, RunConfig, State, main
from he_params import ParameterProfile


@pytest.fixture
def ui():
    return Console(file=io.StringIO(), width=160, color_system=None)


@pytest.fixture
def script(monkeypatch):
    """Feed answers to Prompt/IntPrompt/Confirm in order"""

    def install(choices=(), ints=(), confirms=()):
        queues = {"choice": list(choices), "int": list(ints), "confirm": list(confirms)}

        def answer(kind):
            def ask(*args, **kwargs):
                item = queues[kind].pop(0)
                if isinstance(item, BaseException):
                    raise item
                return item
            return ask

        monkeypatch.setattr(calculator_interactive.Prompt, "ask", answer("choice"))
        monkeypatch.setattr(calculator_interactive.IntPrompt, "ask", answer("int"))
        monkeypatch.setattr(calculator_interactive.Confirm, "ask", answer("confirm"))
        return queues

    return install


def output(ui):
    return ui.file.getvalue()


def test_single_addition_then_stop(ui, script):
    queues = script(choices=["add"], ints=[2, 50, 100], confirms=[False])
    loop = InteractionLoop(RunConfig(), ui)

    assert loop.run() == 0
    assert loop.state is State.TERMINATED
    text = output(ui)
    assert "150" in text
    assert "Encrypted (Homomorphic add)" in text
    assert not any(queues.values())


def test_all_operations(ui, script):
    script(choices=["all"], ints=[2, 50, 100], confirms=[False])
    assert InteractionLoop(RunConfig(), ui).run() == 0
    text = output(ui)
    for expected in ("150", "-50", "5000"):
        assert expected in text


def test_exit_choice_terminates_cleanly(ui, script):
    script(choices=["exit"])
    assert InteractionLoop(RunConfig(), ui).run() == 0


@pytest.mark.parametrize("interrupt", [KeyboardInterrupt(), EOFError()])
def test_cancelled_prompt_terminates_cleanly(ui, script, interrupt):
    script(choices=["sub"], ints=[2, 1, interrupt])
    loop = InteractionLoop(RunConfig(), ui)
    assert loop.run() == 0
    assert loop.state is State.TERMINATED


def test_input_count_reprompts_until_positive(ui, script):
    script(choices=["multiply"], ints=[0, -3, 1, 7], confirms=[False])
    assert InteractionLoop(RunConfig(), ui).run() == 0
    text = output(ui)
    assert "At least one input is required" in text
    assert "7" in text


def test_noise_failure_is_recoverable(ui, script):
    script(
        choices=["multiply", "add"],
        ints=[3, 2, 2, 2, 2, 1, 2],
        confirms=[True, False],
    )
    assert InteractionLoop(RunConfig(), ui).run() == 0
    text = output(ui)
    assert "Noise budget exhausted" in text
    assert "Decrypted results" in text


def test_out_of_range_input_is_recoverable(ui, script):
    script(choices=["add", "exit"], ints=[2, 2_000_000, 1], confirms=[True])
    assert InteractionLoop(RunConfig(), ui).run() == 0
    assert "outside the plaintext range" in output(ui)


def test_blobs_hidden_when_disabled(ui, script):
    script(choices=["add"], ints=[2, 50, 100], confirms=[False])
    config = RunConfig(display_encrypted_blobs=False)
    assert InteractionLoop(config, ui).run() == 0
    text = output(ui)
    assert "150" in text
    assert "Encrypted (Homomorphic" not in text


def test_unsupported_compression_still_shows_result(ui, script):
    script(choices=["sub"], ints=[2, 50, 100], confirms=[False])
    config = RunConfig(compression="brotli")
    assert InteractionLoop(config, ui).run() == 0
    text = output(ui)
    assert "-50" in text
    assert "Encrypted (Homomorphic" not in text


def test_config_error_is_fatal(script, capsys):
    script(choices=["add"], ints=[2, 1, 2], confirms=[True])
    config = RunConfig(parameter_profile=ParameterProfile(poly_modulus_degree=1024))
    assert main(config) == 1
    assert "Configuration error" in capsys.readouterr().out


def test_main_normal_exit(script):
    script(choices=["exit"])
    assert main() == 0


def test_unknown_choice_terminates_cleanly(ui, script):
    queues = script(choices=["div", "exit"], ints=[2, 1, 2], confirms=[True])
    loop = InteractionLoop(RunConfig(), ui)
    assert loop.run() == 0
    assert loop.state is State.TERMINATED
    assert queues["choice"] == ["exit"]
    assert queues["int"] == [2, 1, 2]


def test_choice_is_case_insensitive(ui, script):
    script(choices=[" ADD "], ints=[2, 50, 100], confirms=[False])
    assert InteractionLoop(RunConfig(), ui).run() == 0
    assert "150" in output(ui)


def test_zstd_blob_is_displayed(ui, script):
    script(choices=["add"], ints=[2, 50, 100], confirms=[False])
    assert InteractionLoop(RunConfig(compression="zstd"), ui).run() == 0
    assert "Encrypted (Homomorphic add)" in output(ui)


def test_long_sum_through_the_loop(ui, script):
    script(choices=["add"], ints=[60] + [1] * 60, confirms=[False])
    assert InteractionLoop(RunConfig(display_encrypted_blobs=False), ui).run() == 0
    text = output(ui)
    assert "Noise budget exhausted" not in text
    assert "Decrypted results" in text
