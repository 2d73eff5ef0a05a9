from reply_labeler.main import main

main()
