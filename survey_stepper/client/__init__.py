"""HTTP client mirror of survey session state."""

from survey_stepper.client.stepper import StepNavigationInfo, StepperError, StepperState, StepperStore

__all__ = ["StepperStore", "StepperState", "StepNavigationInfo", "StepperError"]
