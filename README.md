# qrpose

Estimate the 6-DoF pose of a square QR code from its four image corners,
relate two QR readers to each other through a correction matrix, and
calibrate a tool point against a robot base.

Corner data comes from a QR reader over TCP or from a text file, in the
reader's plain text format: comma-separated entries, each an ID followed by
four `x/y` pixel corners separated by colons.

```
001:1010/760:1090/762:1088/842:1008/840,002:...
```

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
qrpose [MODE] [--output-dir DIR] [--points-dir DIR]
```

If `MODE` is not given, the command asks for it on standard input. The modes:

- `cal` – read QR code `001` from both readers, compute each reader's pose of
  it (QR side 30 mm) and save them as `qrr1_boydqr_pose.txt` and
  `qrr2_boydqr_pose.txt` in the output directory.
- `run` – load those two poses, build the correction matrix between the
  readers, read QR code `1807` from both readers and report the reprojection
  of the first reader's pose into the second reader's image.
- `tp` – read QR code `001` from the first reader, compute the transform from
  the reader to the robot base from a fixed base-to-QR pose, save it as
  `6DTP_first.txt` and print it as a 6-D pose.
- `tptest` – read QR code `001` from the first reader, apply the saved
  `6DTP_first.txt` and print the resulting base-to-QR pose.
- `testcode` – from `qrr1_zig.txt` and `qrr2_zig.txt` in the points directory,
  compute correction matrices for QR codes `001` and `002`, average them,
  print and save the average as `correction_matrix_ms.txt`, then report its
  reprojection on QR code `1807` from `qrr1_station.txt` and
  `qrr2_station.txt`.

`--output-dir` defaults to `../output` and `--points-dir` to `../points`.
The reader addresses are fixed in `qrpose.cli` as `QRR1_ADDRESS` and
`QRR2_ADDRESS`.

An unknown mode is reported on standard error and the command exits with
status 1. An error while a mode runs (no connection, a missing file, a QR ID
not in the data) is reported on standard error as `[Error] ...` and the
command exits with status 0.

Poses are printed with translations in millimetres and rotations as a
theta-u (axis-angle) vector in degrees.

## Library use

```python
import numpy as np

from qrpose.qrdata import parse_qr_data, read_qr_data_file
from qrpose.pose import (
    CameraParameters,
    compute_qr_pose,
    compute_correction_matrix,
    save_matrix,
    load_matrix,
)

camera = CameraParameters(6187.0, 6187.0, 1024.0, 768.0)

corners = parse_qr_data(read_qr_data_file("points/qrr1.txt"), "001")
pose = compute_qr_pose(corners, camera, 30.0)   # 4x4 homogeneous matrix, mm

save_matrix(pose, "qrr1_pose.txt")
print(np.abs(load_matrix("qrr1_pose.txt") - pose).max())
```

### `qrpose.qrdata`

- `QRCorners` – frozen dataclass with `id` and the corner tuples `x` and `y`.
- `parse_qr_data(text, target_id)` – the entry whose ID equals `target_id`
  exactly. Raises `LookupError` if the ID is absent and `ValueError` if the
  entry has fewer than four corners or a corner lacks the `/`.
- `read_qr_data_file(path)` – the file's text.
- `fetch_qr_data(ip, port, command="LON\r\n")` – sends the command to a
  reader and returns its reply; raises `ConnectionError` when the connection
  fails or no reply comes.

### `qrpose.pose`

- `CameraParameters(px, py, u0, v0)` with `pixel_to_meter(u, v)` and
  `camera_matrix()`; `QRR1_CAMERA` and `QRR2_CAMERA` hold the two readers'
  intrinsics.
- `compute_qr_pose(corners, camera, qr_size)` – camera-from-QR transform,
  from a homography-based initial estimate refined by Gauss-Newton on the
  image error.
- `compute_correction_matrix(t_qrr1, t_qrr2)` – `t_qrr2 @ inv(t_qrr1)`.
- `compute_6dtp(corners, translation_mm, rotation_deg)` and
  `apply_6dtp(corners, t_qrr_base)` – tool-point calibration and its use.
- `save_matrix(matrix, path)` / `load_matrix(path)` – four lines of four
  space-separated numbers, written with six significant digits.

### `qrpose.transforms`

`homogeneous`, `rotation_from_rxyz`, `homogeneous_from_pose`, `invert`,
`theta_u_from_rotation`, `rotation_from_theta_u` and `project_points`
(pinhole projection without lens distortion).

### `qrpose.tcp_client`

`TcpClient(ip, port)` – a context manager with `connect()`,
`send_command(command)`, `receive_response()` (one read of at most 1023
bytes) and `close()`.

### `qrpose.cli`

`main(argv=None)`, plus `format_pose_6d(title, matrix)`,
`average_transforms(matrices)` and
`run_reprojection_pipeline(qrr1, qrr2, correction, out=None)`, which prints
its report to `out` (standard output by default) and returns the mean
reprojection error in pixels.

## What it does not do

The package does not read images or decode QR codes itself; it works only on
corner coordinates reported by a reader or stored in a text file. Lens
distortion is not modelled.