from __future__ import annotations


def test_public_api_exports() -> None:
    import camerainit as ci

    assert hasattr(ci, "run_camera_init")
    assert hasattr(ci, "CameraInitOptions")
    assert hasattr(ci, "load_dataset")
    assert hasattr(ci, "save_dataset")
    assert hasattr(ci, "load_sensor_database")
    assert hasattr(ci, "GroupMode")
    assert hasattr(ci, "UNDEFINED_INDEX")
