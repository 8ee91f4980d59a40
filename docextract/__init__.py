"""Identity and blood-report document extraction.

Turns photographed identity cards and laboratory reports into validated
records through a waterfall of OCR and parsing backends, then
cross-checks the two documents for consistency.
"""
