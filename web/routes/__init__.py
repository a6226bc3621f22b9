"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- customers: 고객 생성/조회/비활성화, 고객 잔액
- transactions: 거래 생성/수정/삭제, 승인/거부
- balances: 미수금 합계, 잔액 재계산
- audit: 감사 로그 검색
- users: 사용자 디렉토리
"""
