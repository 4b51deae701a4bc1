from .token_gate import TokenIdentityGate, decode_jwt_payload

__all__ = ["TokenIdentityGate", "decode_jwt_payload"]
