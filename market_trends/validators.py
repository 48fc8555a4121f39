# SPDX-License-Identifier: AGPL-3.0-only

"""
Input validation schemas using Marshmallow for API endpoints.
"""

from marshmallow import Schema, fields, validate, pre_load


class MarketAnalysisRequestSchema(Schema):
    """Validation schema for market analysis requests."""
    subject = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=200),
        error_messages={
            'required': 'Subject field is required',
            'invalid': 'Subject must be a string'
        }
    )
    session_id = fields.Str(
        required=False,
        allow_none=True,
        validate=validate.Length(min=1, max=100),
        error_messages={'invalid': 'Session id must be a string'}
    )

    @pre_load
    def strip_subject(self, data, **kwargs):
        """Trim the subject so whitespace-only input fails the length check."""
        if isinstance(data, dict) and isinstance(data.get('subject'), str):
            data = dict(data)
            data['subject'] = data['subject'].strip()
        return data
