"""
QR code detection in photos.
"""

from typing import Any, List, Optional

from PIL import Image

from .config import AppConfig
from .image_processor import ImageProcessor
from .logging_setup import get_logger

logger = get_logger(__name__)

QR_SYMBOLOGY = "QRCODE"


def _scan_symbols(bitmap: Image.Image) -> List[Any]:
    """Run zbar over a bitmap and return every decoded symbol."""
    # Deferred so the package imports on hosts without the zbar shared library;
    # a missing library surfaces as a decode failure.
    from pyzbar import pyzbar
    return pyzbar.decode(bitmap)


def select_qr_payload(symbols: List[Any]) -> Optional[str]:
    """
    Pick the payload of the first QR symbol.
    
    Other barcode symbologies (EAN, Code 128, ...) are ignored.
    
    Args:
        symbols: Decoded symbols with ``type`` and ``data`` attributes
        
    Returns:
        The payload text, or None when no QR symbol is present
    """
    for symbol in symbols:
        if getattr(symbol, 'type', None) != QR_SYMBOLOGY:
            continue
        data = symbol.data
        if isinstance(data, bytes):
            data = data.decode('utf-8', errors='replace')
        return data
    return None


class QrDecoder:
    """Stateless QR decoder; safe to call from several worker threads."""
    
    def __init__(self, config: AppConfig, image_processor: Optional[ImageProcessor] = None):
        self.config = config
        self.image_processor = image_processor or ImageProcessor(config)
        
    def decode(self, img: Optional[Image.Image]) -> Optional[str]:
        """
        Decode the QR payload visible in a photo.
        
        Args:
            img: PIL Image object, or None when no pixels are available
            
        Returns:
            QR payload, or None when the image is unreadable or has no QR code
        """
        if img is None:
            logger.debug("No image supplied for QR decoding")
            return None
        
        bitmap = self.image_processor.prepare_for_decode(img)
        if bitmap is None:
            return None
        
        try:
            symbols = _scan_symbols(bitmap)
        except Exception as e:
            logger.error(f"Barcode recognition failed: {str(e)}")
            return None
        finally:
            bitmap.close()
        
        payload = select_qr_payload(symbols)
        if payload is None:
            logger.debug(f"No QR code among {len(symbols)} detected barcode(s)")
        return payload
