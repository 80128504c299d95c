"""
Prepare images for barcode recognition.
"""

from typing import Optional
from PIL import Image, ImageOps

from .config import AppConfig
from .logging_setup import get_logger

logger = get_logger(__name__)


class ImageProcessor:
    """Class to turn photos into bitmaps suited to barcode recognition."""
    
    def __init__(self, config: AppConfig):
        """
        Initialize the image processor.
        
        Args:
            config: Application configuration
        """
        self.config = config
        self.target_long_edge = config.decode_target_long_edge
        self.max_long_edge = max(config.decode_max_long_edge, config.decode_target_long_edge)
        
    def prepare_for_decode(self, img: Image.Image) -> Optional[Image.Image]:
        """
        Prepare an image for barcode decoding.
        
        The image is rotated according to its EXIF orientation, converted to
        8-bit grayscale and scaled so its long edge is at least the decode
        target (small previews are upscaled) and no more than the decode
        maximum.
        
        Args:
            img: PIL Image object
            
        Returns:
            Grayscale PIL Image if successful, None otherwise
        """
        if img is None:
            return None
        
        try:
            prepared = ImageOps.exif_transpose(img)
            if prepared.mode != 'L':
                prepared = prepared.convert('L')
            else:
                prepared = prepared.copy()
            
            long_edge = max(prepared.width, prepared.height)
            if long_edge == 0:
                logger.warning("Cannot decode an empty image")
                return None
            
            if long_edge < self.target_long_edge:
                scale = self.target_long_edge / long_edge
            elif long_edge > self.max_long_edge:
                scale = self.max_long_edge / long_edge
            else:
                scale = 1.0
            
            if scale != 1.0:
                size = (max(1, round(prepared.width * scale)), max(1, round(prepared.height * scale)))
                prepared = prepared.resize(size, Image.Resampling.LANCZOS)
                logger.debug(f"Resized decode bitmap to {prepared.width}x{prepared.height}")
            
            return prepared
        except Exception as e:
            logger.error(f"Error preparing image for decode: {str(e)}")
            return None
