"""
Shared plumbing for resolvers backed by public web services.
"""

import time
from typing import Any, Callable, Dict, Optional

import requests

from .config import AppConfig
from .logging_setup import get_logger

logger = get_logger(__name__)


class LookupService:
    """
    Base class for resolvers that call JSON web services.
    
    Holds configuration only; no state is kept between calls, so one
    instance can serve every worker thread.
    """
    
    def __init__(self, config: AppConfig):
        """
        Initialize the lookup service.
        
        Args:
            config: Application configuration
        """
        self.config = config
        self.lookups = config.lookups
        self.timeout = config.lookups.request_timeout
        self.max_retries = config.lookups.max_retries
        self.headers = {
            'User-Agent': config.lookups.user_agent,
            'Accept': 'application/json',
        }
    
    def call_with_retries(self, request_func: Callable[[], Optional[Any]]) -> Optional[Any]:
        """
        Call a request function with retries.
        
        Args:
            request_func: Function to call that returns a result or None
            
        Returns:
            Result if successful, None otherwise
        """
        for attempt in range(self.max_retries):
            try:
                result = request_func()
                if result is not None:
                    return result
            except Exception as e:
                logger.error(f"Error in lookup call (attempt {attempt + 1}): {str(e)}")
            
            if attempt < self.max_retries - 1:
                logger.info(f"Retrying lookup in {2 ** attempt} seconds (attempt {attempt + 1}/{self.max_retries})")
                time.sleep(2 ** attempt)  # Exponential backoff
        
        logger.warning(f"No valid response after {self.max_retries} attempts")
        return None
    
    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        Issue one GET request and decode the JSON body.
        
        Args:
            url: Service URL
            params: Query parameters
            
        Returns:
            Decoded JSON, or None on network, status or parse failure
        """
        try:
            response = requests.get(url, params=params, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.warning(f"Request to {url} failed: {str(e)}")
            return None
        except ValueError as e:
            logger.warning(f"Invalid JSON from {url}: {str(e)}")
            return None
    
    def fetch_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """GET with retries; None when every attempt failed."""
        return self.call_with_retries(lambda: self.get_json(url, params))
