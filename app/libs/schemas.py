from marshmallow import Schema, fields


class PaginationSchema(Schema):
    page = fields.Int()
    per_page = fields.Int()
    total_items = fields.Int()
    total_pages = fields.Int()


class EnvelopeSchema(Schema):
    """Uniform response envelope: {success, message, data, error?}

    Subclasses declare `data` with the payload schema of their endpoint.
    """

    success = fields.Bool(dump_default=True)
    message = fields.Str()
    error = fields.Str()


def envelope(data=None, message="OK"):
    """Wrap a payload into the success envelope"""
    return {"success": True, "message": message, "data": data}


