"""Domestic vs. international place-name classification."""

from __future__ import annotations

# Country and major foreign city names, in Chinese and romanized form.
INTERNATIONAL_KEYWORDS: tuple[str, ...] = (
    # Countries
    "日本", "韩国", "泰国", "新加坡", "马来西亚", "印度尼西亚", "菲律宾", "越南", "柬埔寨", "缅甸", "老挝",
    "美国", "加拿大", "墨西哥", "巴西", "阿根廷", "智利", "秘鲁", "哥伦比亚",
    "英国", "法国", "德国", "意大利", "西班牙", "葡萄牙", "荷兰", "比利时", "瑞士", "奥地利", "希腊", "土耳其", "俄罗斯",
    "澳大利亚", "新西兰", "斐济",
    "埃及", "南非", "肯尼亚", "摩洛哥",
    "印度", "斯里兰卡", "尼泊尔", "不丹", "马尔代夫",
    "迪拜", "阿联酋", "卡塔尔", "沙特阿拉伯", "以色列", "约旦",
    "冰岛", "挪威", "瑞典", "丹麦", "芬兰",
    "捷克", "波兰", "匈牙利", "克罗地亚", "塞尔维亚",
    # Cities
    "东京", "大阪", "京都", "首尔", "曼谷", "吉隆坡", "雅加达",
    "纽约", "洛杉矶", "旧金山", "芝加哥", "波士顿", "华盛顿", "多伦多", "温哥华",
    "伦敦", "巴黎", "柏林", "罗马", "马德里", "巴塞罗那", "阿姆斯特丹", "维也纳", "苏黎世", "雅典",
    "悉尼", "墨尔本", "奥克兰",
    "开罗", "开普敦", "内罗毕",
    "新德里", "孟买", "科伦坡", "加德满都",
    "多哈", "利雅得", "特拉维夫",
    "雷克雅未克", "奥斯陆", "斯德哥尔摩", "哥本哈根", "赫尔辛基",
    "布拉格", "华沙", "布达佩斯", "萨格勒布",
    # Romanized
    "japan", "korea", "thailand", "singapore", "malaysia", "indonesia", "philippines", "vietnam", "cambodia",
    "united states", "canada", "mexico", "brazil", "argentina", "peru",
    "united kingdom", "england", "france", "germany", "italy", "spain", "portugal", "netherlands", "belgium",
    "switzerland", "austria", "greece", "turkey", "russia",
    "australia", "new zealand", "egypt", "south africa", "kenya", "morocco",
    "india", "sri lanka", "nepal", "maldives", "dubai", "qatar", "israel",
    "iceland", "norway", "sweden", "denmark", "finland", "czech", "poland", "hungary", "croatia",
    "tokyo", "osaka", "kyoto", "seoul", "bangkok", "kuala lumpur", "jakarta",
    "new york", "los angeles", "san francisco", "chicago", "boston", "toronto", "vancouver",
    "london", "paris", "berlin", "madrid", "barcelona", "amsterdam", "vienna", "zurich", "athens",
    "sydney", "melbourne", "auckland", "cairo", "cape town", "nairobi",
    "new delhi", "mumbai", "colombo", "kathmandu", "doha", "riyadh", "tel aviv",
    "reykjavik", "oslo", "stockholm", "copenhagen", "helsinki", "prague", "warsaw", "budapest", "zagreb",
)


def is_international(address: str, keywords: tuple[str, ...] = INTERNATIONAL_KEYWORDS) -> bool:
    lowered = address.lower()
    return any(keyword.lower() in lowered for keyword in keywords)
