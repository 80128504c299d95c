"""
Persisted list of collector names offered as suggestions.
"""

import json
import os
import threading
from typing import List, Set

from .logging_setup import get_logger

logger = get_logger(__name__)


class CollectorPreferences:
    """Deduplicated set of collector names, stored as JSON."""
    
    def __init__(self, preferences_file: str):
        """
        Initialize the preferences store.
        
        Args:
            preferences_file: Path to the JSON file holding the names
        """
        self.preferences_file = os.path.abspath(os.path.expanduser(preferences_file))
        self._collectors: Set[str] = set()
        self._lock = threading.Lock()
        
    def load(self) -> List[str]:
        """
        Load collector names from disk.
        
        A missing or unreadable file leaves the store empty.
        
        Returns:
            Sorted list of collector names
        """
        collectors: Set[str] = set()
        if os.path.exists(self.preferences_file):
            try:
                with open(self.preferences_file, 'r') as f:
                    data = json.load(f)
                collectors = {
                    name.strip() for name in data.get('collectorValues', [])
                    if isinstance(name, str) and name.strip()
                }
                logger.info(f"Loaded {len(collectors)} collector name(s)")
            except (OSError, ValueError, AttributeError) as e:
                logger.error(f"Error loading collector preferences: {str(e)}")
        else:
            logger.info("No collector preferences found, starting with empty preferences")
        
        with self._lock:
            self._collectors = collectors
        return self.all()
        
    def save(self) -> bool:
        """
        Save collector names to disk.
        
        Returns:
            True if successful, False otherwise
        """
        with self._lock:
            data = {'collectorValues': sorted(self._collectors)}
        try:
            directory = os.path.dirname(self.preferences_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.preferences_file, 'w') as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.error(f"Error saving collector preferences: {str(e)}")
            return False
    
    def add(self, collector: str) -> bool:
        """
        Remember a collector name.
        
        Args:
            collector: Name as typed by the user; surrounding whitespace is dropped
            
        Returns:
            True if the name was new and has been saved
        """
        name = collector.strip()
        if not name:
            return False
        with self._lock:
            if name in self._collectors:
                return False
            self._collectors.add(name)
        return self.save()
    
    def all(self) -> List[str]:
        """Sorted list of collector names."""
        with self._lock:
            return sorted(self._collectors)
    
    def clear(self) -> bool:
        """Forget every collector name."""
        with self._lock:
            self._collectors = set()
        return self.save()
