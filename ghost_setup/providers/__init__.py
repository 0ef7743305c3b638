"""외부 제공자 (SerpAPI 검색, Gemini 계획/랭킹/장면 이미지)

각 클라이언트 모듈을 직접 import 해서 사용합니다.
"""
