class NotifierError(Exception):
    pass

class RetryableError(NotifierError):
    """Temporary: the webhook could not be reached."""
    pass

class PermanentError(NotifierError):
    """Won’t improve with redelivery: bad payload, missing fields, bad timestamp."""
    pass

class DecodeError(PermanentError):
    """Payload present but not valid base64 / UTF-8 / JSON."""
    pass

class ExtractionError(PermanentError):
    """Required field missing or timestamp unparsable."""
    pass

class DeliveryTransportError(RetryableError):
    """Network/transport failure while posting to the webhook."""
    pass
