def mask_phone(phone) -> str:
    """Mascara o telefone para logs, mantendo só os 4 últimos dígitos."""
    if not phone:
        return ""
    digits = str(phone)
    visible = 4
    if len(digits) <= visible:
        return "*" * len(digits)
    return f"{'*' * (len(digits) - visible)}{digits[-visible:]}"
