import logging
import math
import os
import sys

current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
sys.path.insert(0, parent_dir)

import numpy as np

from pyvecmath import Vector, Matrix, Quaternion, Transform, LogLevel, configure_logging
from pyvecmath.errors import DegenerateInputError
from pyvecmath.utils import RAD_TO_DEG

STEPS = int(os.getenv("PYVECMATH_DEMO_STEPS", "4"))


def demo_2d():
    logging.info("--- 2D: shortest-arc pose interpolation ---")
    start = Matrix.compose_transform(Vector.of(0, 0), 170 / RAD_TO_DEG, Vector.of(1, 1))
    end = Matrix.compose_transform(Vector.of(10, 5), -170 / RAD_TO_DEG, Vector.of(2, 0.5))
    for i in range(STEPS + 1):
        t = i / STEPS
        pose = start.interpolate(end, t)
        logging.info(f"[2D] t={t:.2f} pos={pose.get_translation()} "
                     f"angle={pose.get_rotation_2d() * RAD_TO_DEG:.1f}deg scale={pose.get_scale()}")


def demo_3d():
    logging.info("--- 3D: decompose, slerp, recompose ---")
    start = Transform(Vector.of(0, 0, 0), Quaternion.identity(), Vector.one(3))
    end = Transform(Vector.of(2, 4, -6),
                    Quaternion.from_euler_angles(math.pi / 2, math.pi / 6, 0),
                    Vector.of(1, 2, 1))
    corners = np.array([[x, y, z] for x in (-1, 1) for y in (-1, 1) for z in (-1, 1)], dtype=float)
    for i in range(STEPS + 1):
        t = i / STEPS
        pose = start.lerp(end, t)
        axis, angle = pose.rotation.to_axis_angle()
        moved = pose.to_matrix().transform_points(corners)
        logging.info(f"[3D] t={t:.2f} pos={pose.translation} axis={axis} angle={angle * RAD_TO_DEG:.1f}deg "
                     f"bbox_min={Vector.from_numpy(moved.min(axis=0))} bbox_max={Vector.from_numpy(moved.max(axis=0))}")

    recovered = Transform.from_matrix(end.to_matrix())
    logging.info(f"[3D] Round trip of end pose matches: {recovered.is_close(end)}")


def demo_inverse():
    logging.info("--- Inverse and determinant ---")
    m = Matrix.compose_transform(Vector.of(1, 2, 3), Quaternion.angle_axis(0.5, 1), Vector.of(2, 2, 2))
    logging.info(f"det = {m.determinant():.3f}")
    logging.info(f"m * m^-1 is identity: {(m * m.invert()).is_identity()}")
    try:
        Matrix.scale(1, 0, 1).invert()
    except DegenerateInputError as e:
        logging.warning(f"Expected failure: {e}")


def main():
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s-%(name)s-%(levelname)s-%(message)s')
    configure_logging(LogLevel.DEBUG)
    demo_2d()
    demo_3d()
    demo_inverse()


if __name__=="__main__":
    try: main()
    except KeyboardInterrupt: logging.info("Terminated by user.")
    except Exception as e: logging.exception(f"Unhandled exception: {e}")
    finally: logging.info("Exiting.")
