"""
Fuzzy Matcher for Korean Text

추출된 개체 문자열과 PDF 텍스트 조각을 편집 거리로 비교합니다.
정규화는 호출하는 쪽의 책임이며, 여기서는 문자열을 그대로 비교합니다.
"""


class FuzzyMatcher:
    """
    Levenshtein 기반 문자열 유사도

    원리:
    1. 삽입/삭제/치환 비용 1인 DP 테이블로 편집 거리 계산
    2. 긴 문자열 길이로 나누어 0.0 ~ 1.0 유사도로 변환
    """

    def levenshtein_distance(self, text1: str, text2: str) -> int:
        """
        Levenshtein 편집 거리 계산

        Example:
            levenshtein("2025531", "20250531")
            → 1  (1글자 차이)

        Args:
            text1, text2: 비교할 텍스트

        Returns:
            편집 거리 (0 = 동일)
        """
        if text1 == text2:
            return 0

        len1, len2 = len(text1), len(text2)

        # DP 테이블
        dp = [[0] * (len2 + 1) for _ in range(len1 + 1)]

        # 초기화
        for i in range(len1 + 1):
            dp[i][0] = i
        for j in range(len2 + 1):
            dp[0][j] = j

        # 편집 거리 계산
        for i in range(1, len1 + 1):
            for j in range(1, len2 + 1):
                if text1[i-1] == text2[j-1]:
                    dp[i][j] = dp[i-1][j-1]
                else:
                    dp[i][j] = min(
                        dp[i-1][j] + 1,      # 삭제
                        dp[i][j-1] + 1,      # 삽입
                        dp[i-1][j-1] + 1     # 치환
                    )

        return dp[len1][len2]

    def similarity(self, text1: str, text2: str) -> float:
        """
        정규화된 Levenshtein 유사도 (0.0 ~ 1.0)

        Example:
            similarity("행정동", "행정동") → 1.0
            similarity("", "") → 1.0

        Args:
            text1, text2: 비교할 텍스트

        Returns:
            유사도 (1.0 = 동일, 0.0 = 완전 다름)
        """
        max_len = max(len(text1), len(text2))

        if max_len == 0:
            return 1.0

        distance = self.levenshtein_distance(text1, text2)
        return 1.0 - (distance / max_len)


# Global instance
_fuzzy_matcher_instance = None


def get_fuzzy_matcher() -> FuzzyMatcher:
    """Get global fuzzy matcher instance"""
    global _fuzzy_matcher_instance
    if _fuzzy_matcher_instance is None:
        _fuzzy_matcher_instance = FuzzyMatcher()
    return _fuzzy_matcher_instance


def similarity(text1: str, text2: str) -> float:
    return get_fuzzy_matcher().similarity(text1, text2)
