"""Hospital context implementations."""

from __future__ import annotations


class StaticHospitalContext:
    """Hospital identity fixed for the lifetime of the console."""

    def __init__(self, hospital_id: str | None) -> None:
        self._hospital_id = hospital_id

    @property
    def hospital_id(self) -> str | None:
        return self._hospital_id


class MutableHospitalContext:
    """Hospital identity that becomes known (or changes) after sign-in.

    The controller reads it once per attempt, so a change only affects
    attempts dispatched afterwards.
    """

    def __init__(self, hospital_id: str | None = None) -> None:
        self._hospital_id = hospital_id

    @property
    def hospital_id(self) -> str | None:
        return self._hospital_id

    def sign_in(self, hospital_id: str) -> None:
        self._hospital_id = hospital_id

    def sign_out(self) -> None:
        self._hospital_id = None
