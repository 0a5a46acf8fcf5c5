"""Built-in codecs: encoders write a value to a sink, decoders read a body.

Registered by content type in a ``parley.registry.Registry``.
"""

from parley.codecs.decoders import (
    Decoder,
    decode_form,
    decode_json,
    decode_multipart,
    decode_xml,
    json_decoder,
)
from parley.codecs.encoders import (
    Encoder,
    encode_data,
    encode_html,
    encode_json,
    encode_plain_text,
    encode_xml,
    json_encoder,
    marshal_json,
    no_content,
    write_error,
    xml_encoder,
)
from parley.codecs.result import OK, Declined, EncodeResult, Failed, Ok

__all__ = [
    "OK",
    "Declined",
    "Decoder",
    "EncodeResult",
    "Encoder",
    "Failed",
    "Ok",
    "decode_form",
    "decode_json",
    "decode_multipart",
    "decode_xml",
    "encode_data",
    "encode_html",
    "encode_json",
    "encode_plain_text",
    "encode_xml",
    "json_decoder",
    "json_encoder",
    "marshal_json",
    "no_content",
    "write_error",
    "xml_encoder",
]
