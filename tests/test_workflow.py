import struct
from pathlib import Path

import pytest

from hog_digits.hog_svm import HogSvm
from hog_digits.svm import SvmConfig, SvmKernel
from hog_digits.training import workflow
from hog_digits.training.workflow import TrainingPaths, TrainingWorkflow


def make_workflow(root: Path, **kwargs) -> TrainingWorkflow:
    paths = TrainingPaths(
        data_dir=str(root / "data" / "MNIST"),
        not_digits_dir=str(root / "data" / "NotDigits"),
        output_dir=str(root / "models"),
    )
    options = {"train_negatives": 4, "test_negatives": 2}
    options.update(kwargs)
    return TrainingWorkflow(paths, **options)


def test_default_paths_match_data_layout() -> None:
    paths = TrainingPaths()

    assert Path(paths.mnist(paths.train_images)) == Path("data/MNIST/train-images.idx3-ubyte")
    assert Path(paths.not_digits("test")) == Path("data/NotDigits/test")
    assert Path(paths.model(paths.classifier_model)) == Path("mnistSvm.xml")
    assert Path(paths.model(paths.detector_model)) == Path("svmDigitDetector.xml")


def test_run_trains_and_saves_both_models(training_data: Path) -> None:
    flow = make_workflow(training_data)

    assert flow.run()

    classifier_file = training_data / "models" / "mnistSvm.xml"
    detector_file = training_data / "models" / "svmDigitDetector.xml"
    assert classifier_file.exists() and detector_file.exists()
    assert set(flow.results) == {"classification", "detector"}
    assert all(0.0 <= error <= 100.0 for error in flow.results.values())

    for model_file in (classifier_file, detector_file):
        model = HogSvm()
        assert model.load(str(model_file))


def test_missing_negative_image_keeps_classifier_model(training_data: Path) -> None:
    (training_data / "data" / "NotDigits" / "test" / "image1.bmp").unlink()
    flow = make_workflow(training_data)

    assert flow.run() is False

    assert (training_data / "models" / "mnistSvm.xml").exists()
    assert not (training_data / "models" / "svmDigitDetector.xml").exists()


def test_missing_mnist_file_aborts_before_training(training_data: Path, capsys) -> None:
    (training_data / "data" / "MNIST" / "t10k-labels.idx1-ubyte").unlink()
    flow = make_workflow(training_data)

    assert flow.run() is False

    assert "✗ Failed to load test data" in capsys.readouterr().out
    assert not (training_data / "models").exists()


def test_numerics_failure_is_reported(training_data: Path, monkeypatch, capsys) -> None:
    broken = HogSvm(SvmConfig(kernel=SvmKernel.POLY, degree=0))
    monkeypatch.setattr(workflow, "digit_classifier", lambda: broken)
    flow = make_workflow(training_data)

    assert flow.run() is False

    assert "OpenCV Exception" in capsys.readouterr().out
    assert not (training_data / "models" / "mnistSvm.xml").exists()


def test_skipping_the_classifier_trains_only_the_detector(training_data: Path) -> None:
    flow = make_workflow(training_data)

    assert flow.run(skip_classifier=True)

    assert not (training_data / "models" / "mnistSvm.xml").exists()
    assert (training_data / "models" / "svmDigitDetector.xml").exists()


def test_auto_tune_trains_the_classifier(training_data: Path) -> None:
    flow = make_workflow(training_data, auto_tune=True)

    assert flow.run(skip_detector=True)

    assert (training_data / "models" / "mnistSvm.xml").exists()


def test_distribution_plot_is_written(training_data: Path) -> None:
    plot_file = training_data / "distribution.png"
    flow = make_workflow(training_data)

    assert flow.run(skip_classifier=True, skip_detector=True, plot_file=str(plot_file))

    assert plot_file.exists()


@pytest.mark.parametrize("remove, expected", [(None, 0), ("train-images.idx3-ubyte", 1)])
def test_main_exit_code(training_data: Path, remove, expected) -> None:
    if remove:
        (training_data / "data" / "MNIST" / remove).unlink()

    code = workflow.main([
        "--data-dir", str(training_data / "data" / "MNIST"),
        "--not-digits-dir", str(training_data / "data" / "NotDigits"),
        "--output-dir", str(training_data / "models"),
        "--train-negatives", "4",
        "--test-negatives", "2",
    ])

    assert code == expected


def test_mismatched_split_counts_abort_before_training(training_data: Path, idx_files, capsys) -> None:
    idx_files.labels(training_data / "data" / "MNIST" / "train-labels.idx1-ubyte", [1, 4])
    flow = make_workflow(training_data)

    assert flow.run() is False

    out = capsys.readouterr().out
    assert "has 2 labels" in out
    assert "✗ Failed to load training data" in out
    assert not (training_data / "models").exists()


def test_empty_test_set_fails_the_run(training_data: Path, capsys) -> None:
    mnist_dir = training_data / "data" / "MNIST"
    (mnist_dir / "t10k-images.idx3-ubyte").write_bytes(struct.pack(">4I", 2051, 0, 28, 28))
    (mnist_dir / "t10k-labels.idx1-ubyte").write_bytes(struct.pack(">2I", 2049, 0))
    flow = make_workflow(training_data)

    assert flow.run() is False

    assert "✗ Classification SVM testing failed" in capsys.readouterr().out
    assert not (training_data / "models" / "mnistSvm.xml").exists()


def test_step_outcomes_are_marked(training_data: Path, capsys) -> None:
    (training_data / "data" / "NotDigits" / "train" / "image3.bmp").unlink()
    flow = make_workflow(training_data)

    assert flow.run() is False

    out = capsys.readouterr().out
    assert "✓ Classification model saved to:" in out
    assert "✗ Failed to load non-digit images" in out
