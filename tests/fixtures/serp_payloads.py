"""SerpAPI 응답 자산

- google_shopping / amazon 엔진 응답 모양만 흉내 냄
- pytest fixture 선언하지 않음
"""

SERP_PAYLOADS = {
    "shopping_mixed": {
        "search_metadata": {"status": "Success", "total_time_taken": 1.42},
        "search_information": {"total_results": 4},
        "shopping_results": [
            {
                "product_id": "111",
                "title": "ErgoPro Office Chair",
                "link": "https://www.amazon.com/dp/B000111",
                "price": "$249.99",
                "extracted_price": 249.99,
                "source": "Amazon.com",
                "rating": 4.6,
                "reviews": 1520,
                "thumbnail": "https://images.example.com/111.jpg",
            },
            {
                "product_id": "222",
                "title": "Budget Mesh Chair",
                "link": "https://www.walmart.com/ip/222",
                "price": "$89.00",
                "extracted_price": 89.0,
                "source": "Walmart",
                "rating": 4.1,
                "reviews": 230,
            },
            {
                "product_id": "333",
                "title": "Luxury Leather Executive Chair",
                "product_link": "https://www.amazon.com/dp/B000333",
                "price": "$1,299.00",
                "source": "Amazon",
                "rating": 4.8,
                "reviews": 87,
            },
            {
                "title": "Listing without link",
                "price": "$10.00",
                "source": "Somewhere",
            },
        ],
    },
    "shopping_no_amazon": {
        "search_metadata": {"status": "Success"},
        "shopping_results": [
            {
                "product_id": "444",
                "title": "Walnut Desk",
                "link": "https://www.wayfair.com/444",
                "price": "$199.00",
                "source": "Wayfair",
            },
        ],
    },
    "amazon_engine": {
        "organic_results": [
            {
                "asin": "B0AMZ001",
                "title": "Amazon Basics Desk",
                "link": "https://www.amazon.com/dp/B0AMZ001",
                "price": "$129.99",
                "rating": 4.4,
                "reviews": 3021,
                "thumbnail": "https://images.example.com/amz001.jpg",
            },
        ],
    },
    "error": {"error": "Invalid API key. Your API key should be here: https://serpapi.com/manage-api-key"},
}
