"""Command-line entry point for calibration, reprojection and teaching modes."""

from __future__ import annotations

import argparse
import math
import sys
from pathlib import Path
from typing import Sequence, TextIO

import numpy as np

from qrpose.pose import (
    QRR1_CAMERA,
    QRR2_CAMERA,
    apply_6dtp,
    compute_6dtp,
    compute_correction_matrix,
    compute_qr_pose,
    load_matrix,
    save_matrix,
)
from qrpose.qrdata import QRCorners, fetch_qr_data, parse_qr_data, read_qr_data_file
from qrpose.transforms import homogeneous, project_points, theta_u_from_rotation

QRR1_ADDRESS = ("20.20.0.7", 9004)
QRR2_ADDRESS = ("20.20.0.60", 9004)
CALIBRATION_QR_SIZE = 30.0
REPROJECTION_QR_SIZE = 28.0
MODES = ("cal", "run", "tp", "tptest", "testcode")


def format_pose_6d(title: str, matrix) -> str:
    """Translation in mm and theta-u rotation in degrees as printable text."""
    m = np.asarray(matrix, dtype=float)
    t = m[:3, 3]
    r = np.degrees(theta_u_from_rotation(m[:3, :3]))
    return (
        f"\n[{title}]\n"
        f"Tx: {t[0]:.2f} mm\nTy: {t[1]:.2f} mm\nTz: {t[2]:.2f} mm\n"
        f"Rx: {r[0]:.2f} deg\nRy: {r[1]:.2f} deg\nRz: {r[2]:.2f} deg\n"
    )


def average_transforms(matrices: Sequence) -> np.ndarray:
    """Element-wise mean of transforms, reassembled as a homogeneous matrix."""
    stack = [np.asarray(m, dtype=float) for m in matrices]
    if not stack:
        raise ValueError("cannot average an empty list of transforms")
    mean = np.mean(stack, axis=0)
    return homogeneous(mean[:3, :3], mean[:3, 3])


def run_reprojection_pipeline(
    qrr1: QRCorners, qrr2: QRCorners, correction, out: TextIO | None = None
) -> float:
    """Predict the second reader's corners from the first; return the mean error."""
    out = sys.stdout if out is None else out
    pose_qrr1 = compute_qr_pose(qrr1, QRR1_CAMERA, REPROJECTION_QR_SIZE)
    pose_qrr2 = np.asarray(correction, dtype=float) @ pose_qrr1

    rvec = theta_u_from_rotation(pose_qrr2[:3, :3])
    tvec = pose_qrr2[:3, 3]
    rdeg = rvec * (180.0 / math.pi)
    out.write("\n[Pose in QRR2 Frame (Translation in mm, Rotation in deg)]\n")
    out.write(f"Tx: {tvec[0]:.2f} mm\nTy: {tvec[1]:.2f} mm\nTz: {tvec[2]:.2f} mm\n")
    out.write(f"Rx: {rdeg[0]:.2f} deg\nRy: {rdeg[1]:.2f} deg\nRz: {rdeg[2]:.2f} deg\n")

    s = REPROJECTION_QR_SIZE
    obj = [[0.0, 0.0, 0.0], [s, 0.0, 0.0], [s, s, 0.0], [0.0, s, 0.0]]
    projected = project_points(obj, rvec, tvec, QRR2_CAMERA.camera_matrix())
    truth = np.column_stack((qrr2.x, qrr2.y)).astype(float)

    out.write("\n[Reprojection Result - Using QRR2 Ground Truth]\n")
    errors = np.linalg.norm(projected - truth, axis=1)
    for index, (p, g, err) in enumerate(zip(projected, truth, errors)):
        out.write(
            f"Point {index} | Projected: ({p[0]:.2f}, {p[1]:.2f})"
            f" | GT: ({g[0]:.2f}, {g[1]:.2f}) | Error: {err:.2f}\n"
        )
    mean_error = float(np.mean(errors))
    out.write(f"Mean Reprojection Error: {mean_error:.2f}\n")
    return mean_error


def _format_matrix(matrix) -> str:
    return "\n".join(" ".join(f"{v:g}" for v in row) for row in np.asarray(matrix))


def _calibrate(output_dir: Path) -> None:
    target = "001"
    qrr1 = parse_qr_data(fetch_qr_data(*QRR1_ADDRESS), target)
    qrr2 = parse_qr_data(fetch_qr_data(*QRR2_ADDRESS), target)
    save_matrix(
        compute_qr_pose(qrr1, QRR1_CAMERA, CALIBRATION_QR_SIZE),
        output_dir / "qrr1_boydqr_pose.txt",
    )
    save_matrix(
        compute_qr_pose(qrr2, QRR2_CAMERA, CALIBRATION_QR_SIZE),
        output_dir / "qrr2_boydqr_pose.txt",
    )
    print("[Saved] Pose files.")


def _run(output_dir: Path) -> None:
    qrr1_pose = load_matrix(output_dir / "qrr1_boydqr_pose.txt")
    qrr2_pose = load_matrix(output_dir / "qrr2_boydqr_pose.txt")
    correction = compute_correction_matrix(qrr1_pose, qrr2_pose)
    target = "1807"
    qrr1 = parse_qr_data(fetch_qr_data(*QRR1_ADDRESS), target)
    qrr2 = parse_qr_data(fetch_qr_data(*QRR2_ADDRESS), target)
    run_reprojection_pipeline(qrr1, qrr2, correction)


def _teach(output_dir: Path) -> None:
    corners = parse_qr_data(fetch_qr_data(*QRR1_ADDRESS), "001")
    t_qrr_base = compute_6dtp(corners, (243.36, 205.23, 220.00), (0.0, 0.0, 87.11))
    save_matrix(t_qrr_base, output_dir / "6DTP_first.txt")
    print(format_pose_6d("QRR-BASE Pose (6D)", t_qrr_base), end="")


def _teach_test(output_dir: Path) -> None:
    corners = parse_qr_data(fetch_qr_data(*QRR1_ADDRESS), "001")
    t_qrr_base = load_matrix(output_dir / "6DTP_first.txt")
    t_base_qr2 = apply_6dtp(corners, t_qrr_base)
    print(format_pose_6d("Second TCP location BASE-QR Pose (6D)", t_base_qr2), end="")


def _test_code(output_dir: Path, points_dir: Path) -> None:
    corrections = []
    for target in ("001", "002"):
        qrr1 = parse_qr_data(read_qr_data_file(points_dir / "qrr1_zig.txt"), target)
        qrr2 = parse_qr_data(read_qr_data_file(points_dir / "qrr2_zig.txt"), target)
        qrr1_pose = compute_qr_pose(qrr1, QRR1_CAMERA, CALIBRATION_QR_SIZE)
        qrr2_pose = compute_qr_pose(qrr2, QRR1_CAMERA, CALIBRATION_QR_SIZE)
        corrections.append(compute_correction_matrix(qrr1_pose, qrr2_pose))

    result = average_transforms(corrections)
    print("Average Correction Matrix:\n" + _format_matrix(result))
    save_matrix(result, output_dir / "correction_matrix_ms.txt")

    qrr1 = parse_qr_data(read_qr_data_file(points_dir / "qrr1_station.txt"), "1807")
    qrr2 = parse_qr_data(read_qr_data_file(points_dir / "qrr2_station.txt"), "1807")
    run_reprojection_pipeline(qrr1, qrr2, result)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="qrpose")
    parser.add_argument("mode", nargs="?", help="one of: " + ", ".join(MODES))
    parser.add_argument("--output-dir", type=Path, default=Path("../output"))
    parser.add_argument("--points-dir", type=Path, default=Path("../points"))
    args = parser.parse_args(argv)

    mode = args.mode
    if mode is None:
        try:
            mode = input(f"Select run mode [{', '.join(MODES)}]: ").strip()
        except EOFError:
            mode = ""

    handlers = {
        "cal": lambda: _calibrate(args.output_dir),
        "run": lambda: _run(args.output_dir),
        "tp": lambda: _teach(args.output_dir),
        "tptest": lambda: _teach_test(args.output_dir),
        "testcode": lambda: _test_code(args.output_dir, args.points_dir),
    }
    handler = handlers.get(mode)
    if handler is None:
        print(f"[Input error] unknown mode: {mode}", file=sys.stderr)
        return 1
    try:
        handler()
    except Exception as exc:  # reported, as every failure of a mode is
        print(f"[Error] {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())