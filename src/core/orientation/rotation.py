"""
Quaternion and Euler helpers for device-orientation composition.

Quaternions are numpy arrays in (w, x, y, z) order. Euler angles use the
intrinsic 'YXZ' order of the render frame: yaw about Y, then pitch about X,
then roll about Z. The device reports its angles as Z-X'-Y'' (alpha, beta,
gamma), which maps onto that frame as Euler(x=beta, y=alpha, z=-gamma).

The device quaternion is:

    q = euler_yxz(beta, alpha, -gamma) * q_back * q_screen(-orient)

where q_back is a fixed -90 deg turn about X (the camera looks out of the
back of the device, not its top) and q_screen compensates the current screen
rotation about Z.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

X_AXIS = np.array([1.0, 0.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])

# -90 deg around the x-axis
CAMERA_BACK_CORRECTION = np.array([math.sqrt(0.5), -math.sqrt(0.5), 0.0, 0.0])

# Beyond this |m23| the pitch is treated as gimbal-locked
_GIMBAL_LIMIT = 0.9999999


def identity_quaternion() -> np.ndarray:
    return np.array([1.0, 0.0, 0.0, 0.0])


def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a * b (apply b first, then a, in the local frame of a)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        ax * bw + aw * bx + ay * bz - az * by,
        ay * bw + aw * by + az * bx - ax * bz,
        az * bw + aw * bz + ax * by - ay * bx,
    ])


def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    return np.array([q[0], -q[1], -q[2], -q[3]])


def quaternion_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotation of angle radians about a unit axis."""
    half = angle / 2.0
    s = math.sin(half)
    return np.array([math.cos(half), axis[0] * s, axis[1] * s, axis[2] * s])


def quaternion_from_euler_yxz(x: float, y: float, z: float) -> np.ndarray:
    """Quaternion for intrinsic Euler angles applied in Y, X, Z order."""
    c1, s1 = math.cos(x / 2.0), math.sin(x / 2.0)
    c2, s2 = math.cos(y / 2.0), math.sin(y / 2.0)
    c3, s3 = math.cos(z / 2.0), math.sin(z / 2.0)
    return np.array([
        c1 * c2 * c3 + s1 * s2 * s3,
        s1 * c2 * c3 + c1 * s2 * s3,
        c1 * s2 * c3 - s1 * c2 * s3,
        c1 * c2 * s3 - s1 * s2 * c3,
    ])


def euler_yxz_from_quaternion(q: np.ndarray) -> Tuple[float, float, float]:
    """
    Decompose a unit quaternion into intrinsic 'YXZ' Euler angles.

    Returns:
        (x, y, z) in radians, x in [-pi/2, pi/2]
    """
    w, x, y, z = q
    x2, y2, z2 = x + x, y + y, z + z
    xx, xy, xz = x * x2, x * y2, x * z2
    yy, yz, zz = y * y2, y * z2, z * z2
    wx, wy, wz = w * x2, w * y2, w * z2

    m11 = 1.0 - (yy + zz)
    m13 = xz + wy
    m21 = xy + wz
    m22 = 1.0 - (xx + zz)
    m23 = yz - wx
    m31 = xz - wy
    m33 = 1.0 - (xx + yy)

    euler_x = math.asin(-min(max(m23, -1.0), 1.0))
    if abs(m23) < _GIMBAL_LIMIT:
        euler_y = math.atan2(m13, m33)
        euler_z = math.atan2(m21, m22)
    else:
        euler_y = math.atan2(-m31, m11)
        euler_z = 0.0
    return euler_x, euler_y, euler_z


def compose_device_quaternion(alpha: float, beta: float, gamma: float, orient: float) -> np.ndarray:
    """
    Build the render-frame rotation for a device orientation.

    Args:
        alpha: Z rotation in radians (offset-corrected)
        beta: X' rotation in radians
        gamma: Y'' rotation in radians
        orient: Screen rotation angle in radians

    Returns:
        Unit quaternion (w, x, y, z)
    """
    q = quaternion_from_euler_yxz(beta, alpha, -gamma)
    q = quaternion_multiply(q, CAMERA_BACK_CORRECTION)
    q = quaternion_multiply(q, quaternion_from_axis_angle(Z_AXIS, -orient))
    return q


def decompose_device_quaternion(q: np.ndarray, orient: float) -> Tuple[float, float, float]:
    """
    Inverse of compose_device_quaternion.

    Unique for beta in (-pi/2, pi/2); outside that range an equivalent
    (alpha, beta, gamma) triple describing the same rotation is returned.

    Returns:
        (alpha, beta, gamma) in radians
    """
    q = quaternion_multiply(q, quaternion_from_axis_angle(Z_AXIS, orient))
    q = quaternion_multiply(q, quaternion_conjugate(CAMERA_BACK_CORRECTION))
    beta, alpha, minus_gamma = euler_yxz_from_quaternion(q)
    return alpha, beta, -minus_gamma


class RotationTarget:
    """
    Caller-owned transform that receives the fused rotation in place.

    The renderer keeps a reference to `quaternion`; update() overwrites its
    contents rather than rebinding it.
    """

    def __init__(self) -> None:
        self.quaternion = identity_quaternion()

    def set_quaternion(self, q: np.ndarray) -> None:
        norm = float(np.linalg.norm(q))
        if norm > 0.0:
            q = q / norm
        self.quaternion[:] = q

    @property
    def rotation(self) -> Tuple[float, float, float]:
        """Current rotation as 'YXZ' Euler angles (x, y, z)."""
        return euler_yxz_from_quaternion(self.quaternion)
