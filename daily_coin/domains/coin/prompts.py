# daily_coin/domains/coin/prompts.py

import random
from enum import Enum

from daily_coin.domains.coin.tossing import energy_index

# words the generated text must never contain
FORBIDDEN_WORDS = ["硬币", "卦", "卦象", "象", "此象", "运势", "爻"]

# value = tails among three coins
COIN_DESCRIPTIONS = ["三个正面", "一个反面两个正面", "两个反面一个正面", "三个反面"]

# line names used when describing a toss for a question
LINE_NAMES = ["阴爻", "少阳", "少阴", "阳爻"]

QUESTION_FALLBACK = "无法生成解读"

NIGHT_START_HOUR = 20

LIMIT_MESSAGES_DAYTIME = [
    "今天的智慧已耗尽，明天再继续为你出谋划策～",
    "小脑瓜冒烟啦！明天再来帮你想主意吧～",
    "今天的小困惑已经努力回答完啦，请明天再来呀～",
    "哎呀，小指南针今天转累了，明天再陪你找方向～",
    "问题超限，再问就要剧透宇宙奥秘了～明天继续哦！",
]

LIMIT_MESSAGES_NIGHT = [
    "问题就先放一放，夜里睡个好觉，明天再一起想办法～",
    "你今天已经很努力啦，明天再继续帮你出主意，好不好～",
    "留一点小困惑给明天，就像留一点梦给星星～",
    "问题不是今天一定要解完的事，明天继续一起解锁生活～",
]


class AnalysisField(str, Enum):
    """The seven sections of a daily reading, each with its own sub-prompt."""

    GREETING = ("greeting", "早安心语", "写一句温暖的早安祝福和鼓励")
    OUTFIT = ("outfit", "穿搭灵感", "根据能量指数推荐今天适合的穿搭风格")
    COLOR = ("color", "幸运配色", "推荐一种幸运颜色并说明它的含义")
    MOOD = ("mood", "情绪流动", "描述今天的情绪特点并给出调整建议")
    CAREER = ("career", "工作指引", "给出工作方面的建议")
    LOVE = ("love", "情感气场", "给出人际关系和情感方面的建议")
    LUCK = ("luck", "幸运微光", "描述今天可能遇到的一个小幸运")

    def __new__(cls, value: str, label: str, instruction: str):
        member = str.__new__(cls, value)
        member._value_ = value
        member.label = label
        member.instruction = instruction
        return member


def _tone_rules() -> str:
    return (
        "语气要温暖、鼓励，内容直白，不要用古语，不要有括号内的解释。"
        f"避免使用“{'/'.join(FORBIDDEN_WORDS)}”等字样。"
    )


def describe_coins(coin_results: list[int]) -> str:
    """Position-by-position description of a toss plus its sum and energy index."""
    lines = [
        f"位置{idx}：{COIN_DESCRIPTIONS[value]}（值{value}）"
        for idx, value in enumerate(coin_results, start=1)
    ]
    return (
        "用户提供了一些数字特征，具体如下：\n\n"
        + "\n".join(lines)
        + f"\n\n总值：{sum(coin_results)}\n"
        f"能量指数：{energy_index(coin_results)}（0-3之间，0表示静谦，3表示活力）"
    )


def build_field_messages(field: AnalysisField, coin_results: list[int]) -> list[dict]:
    system = (
        "你是一位专业的个人发展顾问，基于提供的数字特征给出个性化指引。"
        f"这次只写“{field.label}”这一项：一到两句简洁中文，"
        "不得输出标题、Markdown、解释或其他项目。"
        + _tone_rules()
    )
    user = f"{describe_coins(coin_results)}\n\n请写出今天的“{field.label}”：{field.instruction}。"
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        field.value: {"type": "STRING", "description": f"{field.label}：{field.instruction}"}
        for field in AnalysisField
    },
    "required": [field.value for field in AnalysisField],
}


def build_analysis_messages(coin_results: list[int]) -> list[dict]:
    keys = "/".join(field.value for field in AnalysisField)
    system = (
        "你是一位专业的个人发展顾问，基于提供的数字特征给出个性化指引。"
        f"必须严格输出 JSON，键名只能是 {keys}，对应值为简洁中文字符串；"
        "不得输出 Markdown、解释、思维链、额外字段。"
        + _tone_rules()
    )
    sections = "\n".join(
        f"{idx}. {field.label}：{field.instruction}"
        for idx, field in enumerate(AnalysisField, start=1)
    )
    user = (
        f"{describe_coins(coin_results)}\n\n"
        f"请根据这些特征，为用户提供个性化的指引。分析应该包括：\n{sections}\n\n"
        "请用温暖、鼓励、充满希望的语气进行分析。"
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def build_question_messages(question: str, coin_results: list[int]) -> list[dict]:
    banned = "、".join(f"“{w}”" for w in FORBIDDEN_WORDS)
    system = (
        "请根据六爻卦象解读这个问题，直接说结论，不要说卦象和分析过程，"
        "请用温暖、鼓励的语气，语言要直白，不要用古语，"
        "比如“您所问之事”“并无大碍”“宜”“不宜”，但需要进行个性化分析，不要有括号内的解释。"
        f"一定不要出现{banned}这些字词。"
    )
    lines = " ".join(LINE_NAMES[value] for value in coin_results)
    user = f"根据硬币投掷结果（{lines}），请给我关于“{question}”的建议。"
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def pick_limit_message(hour: int, rng: random.Random) -> str:
    pool = LIMIT_MESSAGES_NIGHT if hour >= NIGHT_START_HOUR else LIMIT_MESSAGES_DAYTIME
    return rng.choice(pool)
