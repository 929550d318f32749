"""Small standalone helpers.

- `helpers.crypto`: AES-GCM string encryption and AES-CTR API keys
- `helpers.domain`: registrable domain of a URL
- `helpers.ids`: random hex identifiers
- `helpers.json_response`: FastAPI JSON responses
- `helpers.parse`: integers from JSON by dotted key path
- `helpers.numbers`: decimal rounding
- `helpers.strings`: exact membership
- `helpers.timeutils`: calendar-month arithmetic
"""
