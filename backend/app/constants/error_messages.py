from enum import Enum
from typing import Dict

class ErrorCode(Enum):
    ALREADY_CLOCKED_IN = "ALREADY_CLOCKED_IN"
    NOT_CLOCKED_IN = "NOT_CLOCKED_IN"
    CANNOT_CLOCK_OUT_DURING_BREAK = "CANNOT_CLOCK_OUT_DURING_BREAK"
    ALREADY_ON_BREAK = "ALREADY_ON_BREAK"
    NOT_ON_BREAK = "NOT_ON_BREAK"
    TIME_ENTRY_NOT_FOUND = "TIME_ENTRY_NOT_FOUND"
    BREAK_NOT_FOUND = "BREAK_NOT_FOUND"
    REASON_REQUIRED = "REASON_REQUIRED"
    MANAGER_REQUIRED = "MANAGER_REQUIRED"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    BREAK_REQUIRES_CLOCK_IN = "BREAK_REQUIRES_CLOCK_IN"

MESSAGES: Dict[str, Dict[ErrorCode, str]] = {
    "es": {
        ErrorCode.ALREADY_CLOCKED_IN: "Ya estás fichado.",
        ErrorCode.NOT_CLOCKED_IN: "No estás fichado.",
        ErrorCode.CANNOT_CLOCK_OUT_DURING_BREAK: "No puedes salir durante una pausa. Finaliza la pausa primero.",
        ErrorCode.ALREADY_ON_BREAK: "Ya estás en pausa.",
        ErrorCode.NOT_ON_BREAK: "No estás en pausa.",
        ErrorCode.TIME_ENTRY_NOT_FOUND: "Registro no encontrado.",
        ErrorCode.BREAK_NOT_FOUND: "Pausa no encontrada.",
        ErrorCode.REASON_REQUIRED: "Debe proporcionar un motivo para la modificación.",
        ErrorCode.MANAGER_REQUIRED: "Solo los managers pueden realizar esta acción.",
        ErrorCode.INVALID_TIME_RANGE: "La hora de fin no puede ser anterior a la hora de inicio.",
        ErrorCode.BREAK_REQUIRES_CLOCK_IN: "Debes fichar entrada antes de iniciar una pausa.",
    },
    "en": {
        ErrorCode.ALREADY_CLOCKED_IN: "You are already clocked in.",
        ErrorCode.NOT_CLOCKED_IN: "You are not clocked in.",
        ErrorCode.CANNOT_CLOCK_OUT_DURING_BREAK: "You cannot clock out during a break. End the break first.",
        ErrorCode.ALREADY_ON_BREAK: "You are already on a break.",
        ErrorCode.NOT_ON_BREAK: "You are not on a break.",
        ErrorCode.TIME_ENTRY_NOT_FOUND: "Time entry not found.",
        ErrorCode.BREAK_NOT_FOUND: "Break not found.",
        ErrorCode.REASON_REQUIRED: "A reason must be provided for this change.",
        ErrorCode.MANAGER_REQUIRED: "Only managers can perform this action.",
        ErrorCode.INVALID_TIME_RANGE: "The end time cannot be before the start time.",
        ErrorCode.BREAK_REQUIRES_CLOCK_IN: "You must clock in before starting a break.",
    },
}

DEFAULT_LOCALE = "es"

def explain_error(code: ErrorCode, locale: str = DEFAULT_LOCALE) -> str:
    messages = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    return messages[code]
