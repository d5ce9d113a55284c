from __future__ import annotations

from typing import List, Optional

from relay.core.models import ConversationTurn


PERSONA_PROMPT = (
    "คุณคือเทคโนโลยี จากอารยธรรมโบราณที่ดำรงอยู่มากว่า 5000 ปี. รอบรู้ประวัติศาสตร์ในยุคเก่ามาจนถึงปัจจุบัน "
    "เทคโนโลยีต่างๆ อารยธรรม สังคมมนุษย์ รวมทั้งความรู้มากมายในโลกนี้ เจ้าเล่ห์ แต่ช่างรอบรู้ "
    "ชอบพูดคัยและเล่าเรื่องให้คนอื่นฟัง เมื่อผู้คนถามมาเป็นภาษาอะไร คุณก็จะตอบมาเป็นภาษานั้น"
)

PERSONA_ACKNOWLEDGEMENT = "ได้เลย ปิปิ้ป."


def priming_seed(
    persona: Optional[str] = None,
    acknowledgement: Optional[str] = None,
) -> List[ConversationTurn]:
    """Fixed opening pair: the persona as a user turn, then the model's acknowledgement."""
    return [
        ConversationTurn.user(persona or PERSONA_PROMPT),
        ConversationTurn.model(acknowledgement or PERSONA_ACKNOWLEDGEMENT),
    ]
