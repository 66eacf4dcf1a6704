"""
c4lab.data - Persistence of populations and learned coefficients
"""

from c4lab.data.data_manager import (PopulationRecord, LMSRecord, save_population,
                                     load_population, save_lms_state, load_lms_state)

__all__ = ['PopulationRecord', 'LMSRecord', 'save_population', 'load_population',
           'save_lms_state', 'load_lms_state']
